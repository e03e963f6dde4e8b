"""Instruction prompt for vision-based food analysis."""

FOOD_ANALYSIS_PROMPT = """You are a nutrition vision expert. Analyze the image and detect 1-{max_items} distinct food or beverage items.

IMPORTANT ANALYSIS STEPS:
1. Read ANY visible text, logos, brand names and flavors on packaging
2. Read the nutrition facts panel if one is visible
3. Estimate the portion from shape, size and container

Respond ONLY with valid JSON in this schema:
{{
  "items": [
    {{
      "food_name": "string",
      "brand": "string or null",
      "category": "fruit | vegetable | protein | grain | dairy | snack | dessert | beverage | mixed",
      "serving_size": "string, include grams or ml when estimable (e.g. '1 can (330 ml)', '2 bars (80 g)')",
      "nutrition": {{
        "calories": number,
        "protein_g": number,
        "carbs_g": number,
        "fat_g": number,
        "fiber_g": number,
        "sugar_g": number,
        "sodium_mg": number
      }},
      "confidence": number between 0 and 100,
      "is_packaged": boolean,
      "notes": "string",
      "sources": {{ "label_text": "text read from the label, or null" }}
    }}
  ],
  "overall_confidence": number between 0 and 100,
  "description": "short overview"
}}

Rules:
- Return between 1 and {max_items} items
- If a packaged product shows only its front (no nutrition panel visible), STILL report it:
  read brand and flavor from the pack, set is_packaged to true and leave every nutrition value at 0
- Be conservative with nutrition values
- Keep calories consistent with macros: calories ~= 4*carbs + 4*protein + 9*fat, within 25%

Do not include any text outside the JSON."""


def build_food_analysis_prompt(
    *,
    context: str | None = None,
    barcode: str | None = None,
    text_hint: str | None = None,
    max_items: int = 5,
) -> str:
    """Build the full prompt, appending any hints the client supplied."""
    parts = [FOOD_ANALYSIS_PROMPT.format(max_items=max_items)]
    if context:
        parts.append(f"Context: {context}")
    if barcode:
        parts.append(f"Barcode hint: {barcode}")
    if text_hint:
        parts.append(f"User text hint: {text_hint}")
    return "\n\n".join(parts)
