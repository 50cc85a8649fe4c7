# fairplay/llm/prompts.py
"""
Default prompts for dark pattern scanning and fixing.

The scanner prompts are built from the category registry so the model only
sees category names that the decoder can resolve. All three prompts can be
overridden through settings; the user template must keep HTML_PLACEHOLDER.
"""

from fairplay.taxonomy import CategoryRegistry

HTML_PLACEHOLDER = "%HTML%"


def default_scanner_system_prompt(registry: CategoryRegistry) -> str:
    category_list = "\n".join(
        f"{index}. {category.name}: {category.scan_description}" for index, category in enumerate(registry, start=1)
    )

    return f"""You are an expert at identifying dark patterns in web interfaces. Only flag clear manipulation.

Categories (mutually exclusive):
{category_list}

Rules:
- DO NOT invent elements not in the HTML
- When in doubt, return empty patterns array"""


def default_scanner_user_prompt(registry: CategoryRegistry) -> str:
    type_list = ", ".join(f'"{name}"' for name in registry.names)

    return f"""Analyze this HTML for dark patterns. Return JSON with reasoning and patterns array.

Format: {{"reasoning": "...", "patterns": [{{"type": "...", "title": "...", "description": "...", "selector": "...", "evidence": "..."}}]}}

Types: {type_list}

Rules:
- Only report patterns with evidence from the HTML
- If none found: {{"reasoning": "...", "patterns": []}}
- Return ONLY valid JSON

HTML:
```html
{HTML_PLACEHOLDER}
```"""


MODIFIER_SYSTEM_PROMPT = """You are an AI assistant that helps to design websites by making them less manipulative and more fair for users.

Your task is to generate JavaScript that fixes the identified dark pattern. The JavaScript will be injected into the page.

CRITICAL GUARDRAILS:
1. Never remove any actions like buttons or links
2. Never make buttons look inactive or grayed out if they can be clicked
3. If two buttons are on the same hierarchical level, make both the same design
4. Never add any new information to the page
5. Never add new functionalities
6. Never change facts or numbers
7. Never invert the meaning of a statement

Return ONLY executable JavaScript code. No explanations, no markdown code blocks.
Use document.querySelector/querySelectorAll with the provided selector."""


MODIFIER_USER_TEMPLATE = """Fix this dark pattern:

Type: {category_name}
Title: {title}
Description: {description}
CSS Selector: {selector}

SPECIFIC FIX INSTRUCTIONS FOR {category_name_upper}:
{fix_instructions}

HTML context:
```html
{html}
```

Generate JavaScript following the instructions above."""
