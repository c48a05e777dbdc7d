"""
Prompts for menu dietary analysis.

IMPORTANT: OUTPUT_SCHEMA_PROMPT is the contract the response validator
depends on. Keep field names and enum literals unchanged; anything
dynamic belongs in the builder functions below.
"""

from typing import List, Optional, Sequence

from menu_analysis.domain.menu.models import (
    ContentPart,
    ContentType,
    DietaryPreferences,
    DietaryType,
    MenuItem,
)
from menu_analysis.domain.shared.errors import InvalidRequestError


# ═══════════════════════════════════════════════════════════
# SYSTEM PROMPT (static - identical on every call)
# ═══════════════════════════════════════════════════════════

OUTPUT_SCHEMA_PROMPT = """You are a dietary analysis expert helping users with food restrictions identify safe menu items.

RESPONSE FORMAT: You must respond with valid JSON only, no additional text or explanations outside the JSON structure.

Required JSON structure:
{
  "success": true,
  "results": [
    {
      "itemId": "string",
      "itemName": "string",
      "suitability": "good" | "careful" | "avoid",
      "explanation": "string",
      "questionsToAsk": ["string"] (optional, only for "careful" items),
      "confidence": number (0-1),
      "concerns": ["string"] (optional)
    }
  ],
  "confidence": number (0-1),
  "message": "string" (optional),
  "requestId": "string",
  "processingTime": 0
}

CATEGORIZATION RULES:
- "good": Items that are clearly safe based on dietary restrictions
- "careful": Items that need staff clarification (unclear ingredients, preparation methods)
- "avoid": Items that clearly violate dietary restrictions

For "careful" items, provide specific questions to ask restaurant staff.
Always include confidence scores and detailed explanations."""

VEGAN_RESTRICTIONS = """DIETARY RESTRICTIONS: Strict vegan diet
- NO animal products: meat, poultry, fish, dairy, eggs, honey
- NO animal-derived ingredients: gelatin, casein, whey, etc.
- NO cross-contamination with animal products
- Check cooking methods (shared grills, animal fats)"""

VEGETARIAN_RESTRICTIONS = """DIETARY RESTRICTIONS: Vegetarian diet
- NO meat, poultry, fish, or seafood
- NO meat-based broths, stocks, or sauces
- Dairy and eggs are acceptable
- Check for hidden meat ingredients (bacon bits, anchovies, etc.)"""

MULTIMODAL_TRAILING_INSTRUCTION = (
    "Identify every food and drink item on the menu shown above and analyze each one "
    "against the dietary restrictions. Respond with the required JSON format only."
)

CONNECTION_TEST_ITEM = MenuItem(
    id="1",
    name="Garden Salad",
    description="Fresh mixed greens with tomatoes and cucumbers",
)


# ═══════════════════════════════════════════════════════════
# SECTION BUILDERS (dynamic)
# ═══════════════════════════════════════════════════════════


def build_dietary_section(preferences: DietaryPreferences) -> str:
    """Build the dietary restriction section.

    Custom restrictions are echoed verbatim, whatever their language.
    """
    if preferences.dietary_type is DietaryType.VEGAN:
        return VEGAN_RESTRICTIONS
    if preferences.dietary_type is DietaryType.VEGETARIAN:
        return VEGETARIAN_RESTRICTIONS
    return (
        "DIETARY RESTRICTIONS: Custom restrictions\n"
        f"{preferences.custom_restrictions}\n"
        "- Analyze based on the custom restrictions above\n"
        "- Be extra cautious with unclear ingredients"
    )


def build_items_section(items: Sequence[MenuItem]) -> str:
    """Build the numbered menu item listing.

    Example:
        >>> print(build_items_section([MenuItem(id="1", name="Hummus", price="$6")]))
        MENU ITEMS TO ANALYZE (1 items):
        1. Hummus (itemId: 1)
           Price: $6
    """
    entries = []
    for index, item in enumerate(items, start=1):
        lines = [f"{index}. {item.name} (itemId: {item.id})"]
        if item.description:
            lines.append(f"Description: {item.description}")
        if item.category:
            lines.append(f"Category: {item.category}")
        if item.price:
            lines.append(f"Price: {item.price}")
        entries.append("\n   ".join(lines))

    return f"MENU ITEMS TO ANALYZE ({len(items)} items):\n" + "\n\n".join(entries)


def build_analysis_instructions(request_id: str) -> str:
    """Build the analysis instructions, embedding the request id for cross-checking."""
    return (
        "ANALYSIS INSTRUCTIONS:\n"
        "1. Analyze each menu item against the dietary restrictions\n"
        '2. Categorize as "good", "careful", or "avoid"\n'
        "3. Provide clear explanations for each categorization\n"
        '4. For "careful" items, suggest specific questions to ask staff\n'
        "5. Assign confidence scores based on information clarity\n"
        f"6. Include request ID: {request_id}\n\n"
        "Be thorough but concise. Focus on food safety and dietary compliance."
    )


def build_context_section(context: Optional[str]) -> Optional[str]:
    if context and context.strip():
        return f"ADDITIONAL CONTEXT: {context.strip()}"
    return None


# ═══════════════════════════════════════════════════════════
# COMPOSER
# ═══════════════════════════════════════════════════════════


class PromptComposer:
    """
    Builds the exact prompt sent to the model.

    Pure: identical inputs always produce identical output.

    Example:
        >>> composer = PromptComposer()
        >>> prompt = composer.compose_text(prefs, items, "text-1700000000")
        >>> prompt.startswith(OUTPUT_SCHEMA_PROMPT)
        True
    """

    def compose_text(
        self,
        preferences: DietaryPreferences,
        items: Sequence[MenuItem],
        request_id: str,
        context: Optional[str] = None,
    ) -> str:
        """
        Compose the prompt for a structured item list.

        Sections, in order: output schema, dietary restrictions, item
        listing, analysis instructions, optional additional context.

        Args:
            preferences: User dietary preferences
            items: Menu items to analyze (non-empty)
            request_id: Request id the model must echo
            context: Optional free-form caller context

        Returns:
            Prompt text

        Raises:
            InvalidRequestError: If items is empty
        """
        if not items:
            raise InvalidRequestError("Text analysis requires at least one menu item")

        sections = [
            OUTPUT_SCHEMA_PROMPT,
            build_dietary_section(preferences),
            build_items_section(items),
            build_analysis_instructions(request_id),
        ]
        context_section = build_context_section(context)
        if context_section:
            sections.append(context_section)

        return "\n\n".join(sections)

    def compose_multimodal(
        self,
        preferences: DietaryPreferences,
        content_parts: Sequence[ContentPart],
        request_id: str,
        context: Optional[str] = None,
    ) -> List[ContentPart]:
        """
        Compose the content parts for an image request.

        The instruction text comes first, then the caller's parts in
        their original order, then a trailing instruction (with the
        additional context, if any). Backends rely on this order.

        Raises:
            InvalidRequestError: If no image part is present
        """
        if not any(part.type is ContentType.IMAGE for part in content_parts):
            raise InvalidRequestError("Multimodal analysis requires at least one image part")

        instruction = "\n\n".join(
            [
                OUTPUT_SCHEMA_PROMPT,
                build_dietary_section(preferences),
                build_analysis_instructions(request_id),
            ]
        )

        trailing = MULTIMODAL_TRAILING_INSTRUCTION
        context_section = build_context_section(context)
        if context_section:
            trailing = f"{trailing}\n\n{context_section}"

        return [ContentPart.text(instruction), *content_parts, ContentPart.text(trailing)]

    def compose_connection_test(self, request_id: str) -> str:
        """Compose the canned one-item prompt used to check connectivity."""
        return "\n\n".join(
            [
                OUTPUT_SCHEMA_PROMPT,
                "DIETARY RESTRICTIONS: Vegan diet - no animal products",
                build_items_section([CONNECTION_TEST_ITEM]),
                "ANALYSIS INSTRUCTIONS:\n"
                "1. Analyze the garden salad for vegan compatibility\n"
                "2. Respond with the required JSON format\n"
                f"3. Include request ID: {request_id}\n\n"
                "This is a test request to verify API connectivity.",
            ]
        )
