"""Fixed vocabularies shared by ingredient parsing and quantity display."""

UNICODE_FRACTIONS = {
    "½": 0.5,
    "⅓": 0.333,
    "⅔": 0.667,
    "¼": 0.25,
    "¾": 0.75,
    "⅕": 0.2,
    "⅖": 0.4,
    "⅗": 0.6,
    "⅘": 0.8,
    "⅙": 0.167,
    "⅚": 0.833,
    "⅐": 0.143,
    "⅛": 0.125,
    "⅜": 0.375,
    "⅝": 0.625,
    "⅞": 0.875,
    "⅑": 0.111,
    "⅒": 0.1,
}

# Ordered by value; closest match wins during friendly rounding
FRACTION_DISPLAY = {
    0.125: "1/8",
    0.167: "1/6",
    0.2: "1/5",
    0.25: "1/4",
    0.333: "1/3",
    0.375: "3/8",
    0.4: "2/5",
    0.5: "1/2",
    0.6: "3/5",
    0.625: "5/8",
    0.667: "2/3",
    0.75: "3/4",
    0.8: "4/5",
    0.833: "5/6",
    0.875: "7/8",
}

PREPARATION_WORDS = [
    "chopped",
    "diced",
    "minced",
    "sliced",
    "crushed",
    "grated",
    "shredded",
    "julienned",
    "cubed",
    "melted",
    "softened",
    "sifted",
    "beaten",
    "peeled",
    "seeded",
    "cored",
    "halved",
    "quartered",
    "trimmed",
    "rinsed",
    "drained",
    "packed",
    "loosely packed",
    "firmly packed",
    "room temperature",
    "cold",
    "warm",
    "hot",
    "frozen",
    "thawed",
    "fresh",
    "dried",
    "ground",
    "whole",
    "cooked",
    "raw",
    "uncooked",
]

NOTE_PHRASES = [
    "optional",
    "divided",
    "to taste",
    "as needed",
    "for garnish",
    "for serving",
    "plus more",
    "approximately",
    "about",
]

RANGE_SEPARATORS = ("-", "–", "to")

# Scaled amounts at or below these (in the ingredient's own unit) collapse to "a pinch"
TO_TASTE_THRESHOLD = 1 / 32
PINCH_THRESHOLD = 1 / 16

SCALING_TIPS = {
    "half": [
        "Check doneness earlier than the original time suggests.",
        "Use a smaller baking pan if the original recipe calls for one.",
    ],
    "double": [
        "Consider extending cook time by 10-15 minutes for baked goods.",
        "You may need to use a larger pan or multiple pans.",
        "Mixing time may need to be extended for larger batches.",
    ],
    "triple": [
        "For baked goods, consider making in batches for best results.",
        "Significantly increase mixing time for uniform consistency.",
        "Check internal temperature rather than relying on time alone.",
    ],
    "large": [
        "Very large batches may affect texture and rise in baked goods.",
        "Consider professional equipment for batches this size.",
        "Cooking times may vary significantly - use a thermometer.",
    ],
}
