"""Instructions sent to the generative model, and the placeholder vocabulary
it is known to emit when it finds nothing.

No runtime logic, pure data only. The wording here is tuning, not contract:
every rule the pipeline depends on is re-enforced in code after the call.
"""

# ---------------------------------------------------------------------------
# Rectification (image in, image out)
# ---------------------------------------------------------------------------

RECTIFY_INSTRUCTION = """You are a document scanner. Your task is to extract the document from the provided image.

- Identify the main document in the image.
- Perform a perspective transform to make it look like a flat, top-down scan.
- Crop the image to the exact boundaries of the document.
- Do not add any padding or background. The output image should ONLY be the document itself.
- Do not alter, retouch, or rewrite any of the document's content.
- Return the result as a high-quality image."""

# ---------------------------------------------------------------------------
# Transcription (non-image document in, text out)
# ---------------------------------------------------------------------------

EXTRACT_INSTRUCTION = """Extract **all readable information** from the following document, including:

- Plain text content
- Dates (in any format)
- Headings, tables, labels, or key-value pairs
- Numbers, bullet points, or lists
- Any structured data or metadata found

Return the result as cleanly formatted text, preserving original structure as much as possible."""

# ---------------------------------------------------------------------------
# Metadata synthesis (structured output)
# ---------------------------------------------------------------------------

METADATA_INSTRUCTION = """You are an AI assistant that analyzes documents and generates smart, human-readable filenames and metadata.

Analyze the document provided. Based on the document's content, generate the following:
- filename: a descriptive filename (e.g., "Bank Statement - Chase - June 2024").
- summary: a concise, one to two-sentence summary of the document's content.
- folderTags: a list of folder tags for organization (e.g., ["Finance", "Banking"]).
- folderPath: a hierarchical folder path based on the tags (e.g., "Finance/Banking").
- metadata: any available sender, date and category. For the sender, extract ONLY the name and email address, not the surrounding text.

Your response MUST be a single JSON object with exactly these keys:
{"filename": str, "summary": str, "folderPath": str, "folderTags": [str], "metadata": {"sender": str?, "date": str?, "category": str?}}
Do not include any other text or explanations outside of the JSON object."""

# ---------------------------------------------------------------------------
# Event detection (structured output)
# ---------------------------------------------------------------------------

EVENT_INSTRUCTION = """You are an intelligent assistant specialized in extracting calendar-related events from documents. Extract ALL events you can find: appointments, payment deadlines, renewals, public or school events.

For each event extract:
- title: first identify the main subject of the document (e.g. "Chase Bank", "BMW", "Dr. Smith"), then combine it with the event type, e.g. "BMW - Vehicle Reg. Expires". At most 5 words.
- startDate: the start or due date (required). Use ISO 8601 (YYYY-MM-DDTHH:mm:ss) when the document states the year. If the document gives a date WITHOUT a year, copy the month and day exactly as written (e.g. "August 16 10:00") and do not guess the year.
- endDate: the end date if a range is given, same rules as startDate; otherwise omit it.
- description: a short summary of the event's purpose. If it is a bill, include the amount due.

Do not hallucinate. Only return what is clearly stated. If no valid event is found return {"events": []}.

Your response MUST be a single JSON object: {"events": [{"title": str, "startDate": str, "endDate": str?, "description": str?}]}"""

EVENT_SUMMARY_HINT = "Document summary (use it to enrich event descriptions):\n{summary}"

# ---------------------------------------------------------------------------
# Placeholder vocabulary
# ---------------------------------------------------------------------------
# Values the model emits instead of leaving a field empty. Compared after
# strip() + lower().

PLACEHOLDER_TITLES: frozenset[str] = frozenset({
    "no event found",
    "no events found",
    "no event",
    "no events",
    "no event detected",
    "no title",
    "untitled",
    "none",
    "null",
    "n/a",
    "na",
    "unknown",
})

PLACEHOLDER_DATES: frozenset[str] = frozenset({
    "no start date found",
    "no start date",
    "no date found",
    "no date",
    "none",
    "null",
    "n/a",
    "na",
    "unknown",
    "tbd",
    "tba",
})

# Suffix appended to filenames synthesized from PDF text.
PDF_SUFFIX = ".pdf"
