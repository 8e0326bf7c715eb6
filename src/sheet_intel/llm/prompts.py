"""Default system instructions and prompt templates sent to the model."""

ANALYSIS_SYSTEM = (
    "You are a world-class Business Intelligence Analyst. Extract data objectively. "
    "Percent metrics are on a 0-100 scale."
)

META_SYSTEM = "You are a Chief Product Officer. Analyze patterns and requested features."

DOSSIERS_SYSTEM = """You are the Lead Strategic Consultant. Produce:
1. Why customers say Yes or No.
2. Opportunities and Threats.
3. Act Now (6-8 items)."""

COLUMN_SUMMARY_SYSTEM = (
    "You are a senior research analyst. Identify recurring themes across the rows, "
    "summarize them, and list concrete insights."
)

DEFAULT_META_PROMPT = "General analysis"

ANALYSIS_TEMPLATE = "Analyze this {category} record. Extract metrics and summarize: \n\n {content}"
META_TEMPLATE = "{prompt}\n\nDATA:\n{data}"
DOSSIERS_TEMPLATE = "Synthesize this intelligence into strategic dossiers:\n\n{data}"
COLUMN_SUMMARY_TEMPLATE = "Summarize the following rows (selected columns only):\n\n{data}"

RECORD_SEPARATOR = "\n---\n"
