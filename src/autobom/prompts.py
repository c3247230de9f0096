"""Instruction template sent to the BOM provider."""
from __future__ import annotations

import logging
from typing import Sequence

LOGGER = logging.getLogger(__name__)

DELIMITER = '"""'

CATEGORIES: Sequence[str] = (
    "1. Aluminum Profiles",
    "2. Door Assemblies Breakdown",
    "3. Polycarbonate Sheets",
    "4. MS Sheet / Top Sheet",
    "5. Hardware & Accessories",
    "6. Powder Coating & Finishing",
)

CATEGORY_HINTS = {
    "2. Door Assemblies Breakdown": "(or similar functional groups)",
    "3. Polycarbonate Sheets": "(Calculate Area in Sq.m if needed: L*W)",
}

LENGTH_RULE = "Formula: (Length_mm * Quantity) / 1000 = Billable Quantity (Meters)."

PROMPT_TEMPLATE = """\
You are an expert Quantity Surveyor and Estimator for industrial assembly projects (e.g., Aluminum Profile Guarding, Conveyors, Automation).

**Task**: Create a highly detailed Bill of Materials (BOM) & Cost Estimate from the provided drawings and rate list.

**CONTEXT FROM IMAGES**:
The images provided are technical drawings.
1. **Identify Project Details**: Extract "Project Name", "Drawing Number", "Client Name", "Date", and "Total Assembly Weight" if visible in the title block.
2. **Analyze "Cut Lists"**: Look for tables in the drawings defining profile lengths (e.g., "Profile 45x90", Length: 1232mm, Qty: 4).
3. **Calculate Profile Quantities**:
   - The Rate List typically prices profiles **per Meter**.
   - You MUST calculate the **Total Length** in meters for each profile entry found in the drawing.
   - {length_rule}
   - Example: "Profile 45x90, L=1232, Qty=4" -> 1.232 * 4 = 4.928 Meters.
   - Apply this separately to every distinct cut-length entry in every drawing.
4. **Assembly Breakdown**: If the drawing lists sub-assemblies (e.g., "DOOR ASM-01"), list the components required for them (Profiles, Sheets, Hinges, Handles) as separate line items or grouped clearly.
5. **Categorization**: Group items strictly into categories numbered like:
{categories}
6. **Rates**: Use the provided Rate List. If a rate is missing, estimate a market rate in **{currency}**.

**Rate List**:
{delimiter}
{rate_list}
{delimiter}

**User Scope / Notes**:
{delimiter}
{description}
{delimiter}

**Output Structure**:
Return a strictly valid JSON object (no markdown, no extra text) with 'metadata' and 'items'.
Currency should be "{currency}".

JSON Schema:
{{
  "metadata": {{
    "projectName": "string",
    "drawingNumber": "string",
    "client": "string",
    "date": "string",
    "totalWeight": "string"
  }},
  "items": [
    {{
      "category": "string (Numbered Category)",
      "item": "string (Item Name)",
      "description": "string (Technical specs)",
      "unit": "string (m, sq.m, nos, kg)",
      "quantity": number,
      "rate": number,
      "amount": number
    }}
  ],
  "totalCost": number,
  "currency": "string"
}}
"""


def _category_lines() -> str:
    lines = []
    for label in CATEGORIES:
        hint = CATEGORY_HINTS.get(label)
        lines.append(f'   - "{label}"' + (f" {hint}" if hint else ""))
    return "\n".join(lines)


def build_prompt(rate_list_text: str, project_description: str, currency: str = "INR") -> str:
    """Assemble the provider instructions for one generation request.

    Both user texts are embedded verbatim between triple-quote delimiters.
    """

    for label, text in (("rate list", rate_list_text), ("project description", project_description)):
        if DELIMITER in text:
            LOGGER.warning("The %s contains %s; the provider may misread the section boundary", label, DELIMITER)

    return PROMPT_TEMPLATE.format(
        length_rule=LENGTH_RULE,
        categories=_category_lines(),
        currency=currency,
        delimiter=DELIMITER,
        rate_list=rate_list_text,
        description=project_description,
    )


__all__ = ["CATEGORIES", "LENGTH_RULE", "build_prompt"]
