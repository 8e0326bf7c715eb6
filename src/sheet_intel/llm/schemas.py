"""JSON schemas requested from the model for each call type."""

_STRING = {"type": "string"}
_NUMBER = {"type": "number"}
_STRING_LIST = {"type": "array", "items": _STRING}

ANALYSIS_SCHEMA = {
    "type": "object",
    "properties": {
        "summary": _STRING,
        "insights": _STRING_LIST,
        "metrics": {
            "type": "object",
            "properties": {
                "conversionProbability": _NUMBER,
                "customerSentiment": _NUMBER,
                "dealSizeEstimate": _NUMBER,
                "resolutionTimeMinutes": _NUMBER,
                "churnRisk": _NUMBER,
            },
            "required": ["conversionProbability", "customerSentiment", "churnRisk"],
        },
    },
    "required": ["summary", "insights", "metrics"],
}

META_SCHEMA = {
    "type": "object",
    "properties": {
        "topFeatures": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": _STRING,
                    "description": _STRING,
                    "impactScore": _NUMBER,
                },
                "required": ["title", "description", "impactScore"],
            },
        },
        "executiveNarrative": _STRING,
    },
    "required": ["topFeatures", "executiveNarrative"],
}

DOSSIERS_SCHEMA = {
    "type": "object",
    "properties": {
        "yesNo": _STRING,
        "oppsThreats": _STRING,
        "actNow": _STRING_LIST,
    },
    "required": ["yesNo", "oppsThreats", "actNow"],
}

COLUMN_SUMMARY_SCHEMA = {
    "type": "object",
    "properties": {
        "keyThemes": _STRING_LIST,
        "summary": _STRING,
        "insights": _STRING_LIST,
    },
    "required": ["keyThemes", "summary", "insights"],
}
