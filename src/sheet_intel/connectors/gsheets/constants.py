"""Google Sheets gviz export constants."""

# Export endpoint; source id and sheet name are filled in per request
GVIZ_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{source_id}/gviz/tq"
GVIZ_PARAMS = {"tqx": "out:json"}

# Callback envelope around the JSON payload
ENVELOPE_PREFIX = "google.visualization.Query.setResponse("
ENVELOPE_SUFFIX = ");"
# Anti-XSSI guard the endpoint sometimes prepends
ENVELOPE_GUARD = "/*O_o*/"

# Fallback delimiters when the strict envelope does not match
FALLBACK_OPEN = "({"
FALLBACK_CLOSE = "})"

# Remote error text mentioning any of these points at a wrong tab name
SHEET_ERROR_KEYWORDS = ("sheet", "tab", "range", "grid")

# gviz date literal, e.g. "Date(2024,0,15)"
DATE_LITERAL_PREFIX = "Date("
