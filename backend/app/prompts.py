from typing import Sequence

CHART_SYSTEM_PROMPT = """You are a data visualization expert. Analyze the query and respond with a JSON object that includes visualization configuration and data processing instructions. The response should be ONLY JSON, no other text."""

CHART_USER_TEMPLATE = """Given a dataset with columns [{columns}] and the query: "{query}"

Respond with a JSON object that includes:
1. Chart configuration
2. Data filtering conditions (if needed)
3. Data aggregation instructions (if needed)

Use this exact format:
{{
  "chartType": "line|bar|scatter|pie",
  "xAxis": "<column name>",
  "yAxis": "<column name>",
  "title": "<descriptive title>",
  "filter": {{
    "column": "<column name>",
    "operator": "gt|lt|eq|gte|lte|between",
    "value": <number or [min, max] for between>
  }},
  "aggregation": {{
    "type": "count|sum|average|max|min",
    "column": "<column to aggregate>",
    "groupBy": "<column to group by>"
  }}
}}

Examples of query interpretation:
1. "Show students who scored above 90" -> filter scores > 90
2. "Average scores by grade" -> aggregate average scores grouped by grade
3. "Count of students by grade with scores above 80" -> filter scores > 80, count students grouped by grade

Note: Only include filter and aggregation if relevant to the query.
Use exact column names (case-sensitive) from the list above."""

INSIGHT_SYSTEM_PROMPT = (
    "You are a data analyst. Provide clear, concise insights about the data in 3-4 sentences."
)

INSIGHT_USER_TEMPLATE = (
    "Given this statistical summary of my dataset:\n{description}\n\n"
    "Provide a concise but insightful analysis of the data, highlighting key patterns, "
    "potential outliers, and any notable characteristics. Keep it to 3-4 sentences."
)


def build_chart_prompt(headers: Sequence[str], query: str) -> str:
    return CHART_USER_TEMPLATE.format(columns=", ".join(headers), query=query)


def build_insight_prompt(description: str) -> str:
    return INSIGHT_USER_TEMPLATE.format(description=description)
