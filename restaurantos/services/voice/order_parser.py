"""
Voice Order Parser

Builds the German quick-order prompt, sends it through the AI chat
backend, pulls the JSON object out of the reply and prices every item
against the menu. Prices include VAT, so the VAT share of a line is
``total × rate / (1 + rate)``.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from restaurantos.core.config import get_settings
from restaurantos.services.ai.base import BaseAIService
from restaurantos.services.voice.matcher import match_menu_item

logger = logging.getLogger(__name__)

JSON_FENCE = re.compile(r"```json\s*")
PLAIN_FENCE = re.compile(r"```\s*")
JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

# User-facing messages (the quick order screen is German)
EMPTY_TRANSCRIPT_MESSAGE = "Keine Sprache erkannt. Bitte versuchen Sie es erneut."
EMPTY_MENU_MESSAGE = (
    "Keine Menüpunkte verfügbar. Bitte stellen Sie sicher, dass Menüpunkte geladen sind."
)
UNREADABLE_REPLY_MESSAGE = (
    "KI konnte die Bestellung nicht verstehen. Bitte versuchen Sie deutlicher "
    "zu sprechen oder verwenden Sie einfachere Sprache."
)
NO_MATCH_MESSAGE = (
    "Keine Menüpunkte konnten aus Ihrer Bestellung zugeordnet werden. Bitte "
    "versuchen Sie es mit klareren Artikelnamen erneut."
)


class VoiceOrderError(ValueError):
    """The transcript could not be turned into an order."""


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class ParsedItem:
    """One spoken item, priced. ``menu_item`` is None when nothing matched."""
    name: str
    quantity: int
    notes: Optional[str]
    menu_item: Any
    unit_price: float
    total_price: float
    vat_rate: int
    vat_amount: float

    @property
    def matched(self) -> bool:
        return self.menu_item is not None


@dataclass
class ParsedOrder:
    """The AI's reading of a transcript, with totals over every parsed item."""
    customer_name: Optional[str]
    table_number: Optional[int]
    special_instructions: Optional[str]
    items: list[ParsedItem] = field(default_factory=list)
    subtotal: float = 0.0
    total_vat: float = 0.0
    grand_total: float = 0.0

    @property
    def matched_items(self) -> list[ParsedItem]:
        return [item for item in self.items if item.matched]

    @property
    def unmatched_names(self) -> list[str]:
        return [item.name for item in self.items if not item.matched]


# =============================================================================
# PROMPT
# =============================================================================

def format_menu_lines(menu_items: Sequence[Any]) -> str:
    return "\n".join(
        f'"{item.name}" - €{item.price:.2f} ({item.category})' for item in menu_items
    )


def build_order_prompt(transcript: str, menu_items: Sequence[Any], vat_percent: int = 19) -> str:
    """Build the quick-order prompt listing the menu and the expected JSON shape."""
    return f"""Du bist ein KI-System für Restaurantbestellungen. Analysiere diese Sprachbestellung und extrahiere strukturierte Informationen.

TRANSKRIPT: "{transcript}"

VERFÜGBARE MENÜPUNKTE:
{format_menu_lines(menu_items)}

ANWEISUNGEN:
1. Extrahiere Kundenname falls erwähnt (optional - kann null sein)
2. Extrahiere Tischnummer falls erwähnt (optional - kann null sein)
3. Identifiziere bestellte Artikel und Mengen
4. Ordne Artikel den exakten Menüpunkt-Namen von oben zu
5. Extrahiere besondere Anweisungen oder Notizen
6. Berechne Preise mit {vat_percent}% MwSt (im Preis enthalten)
7. Falls ein Artikel erwähnt aber nicht auf der Speisekarte ist, trotzdem aufnehmen aber markieren

ANTWORTE NUR MIT GÜLTIGEM JSON:
{{
  "customerName": "Name oder null",
  "tableNumber": Zahl oder null,
  "items": [
    {{
      "name": "exakter Menüpunkt-Name von der Liste oben",
      "quantity": Zahl,
      "notes": "besondere Anweisungen oder null",
      "unitPrice": Preis pro Stück,
      "vatRate": {vat_percent},
      "vatAmount": MwSt-Betrag,
      "totalPrice": Gesamtpreis für diesen Artikel
    }}
  ],
  "specialInstructions": "allgemeine Bestellnotizen oder null",
  "subtotal": Zwischensumme,
  "totalVat": Gesamt-MwSt,
  "grandTotal": Gesamtbetrag
}}

WICHTIG:
- Verwende exakte Menüpunkt-Namen von der Liste oben
- Kundenname und Tischnummer sind optional
- Menge muss eine positive Zahl sein
- Alle Preise in Euro
- MwSt ist im Preis enthalten ({vat_percent}%)
- Gib nur gültiges JSON zurück, keinen anderen Text"""


# =============================================================================
# REPLY PARSING
# =============================================================================

def extract_json_object(reply: str) -> dict:
    """
    Pull the order object out of an AI reply.

    Markdown code fences are removed, then everything from the first ``{``
    to the last ``}`` is decoded.

    Raises:
        VoiceOrderError: If no JSON object with a non-empty ``items`` list is found
    """
    text = PLAIN_FENCE.sub("", JSON_FENCE.sub("", (reply or "").strip()))
    match = JSON_OBJECT.search(text)
    if match:
        text = match.group(0)

    try:
        data = json.loads(text)
    except ValueError:
        logger.warning(f"AI reply is not valid JSON: {reply[:200]!r}")
        raise VoiceOrderError(UNREADABLE_REPLY_MESSAGE)

    if not isinstance(data, dict):
        raise VoiceOrderError(UNREADABLE_REPLY_MESSAGE)

    items = data.get("items")
    if not isinstance(items, list) or not items:
        logger.warning("AI reply has no items")
        raise VoiceOrderError(UNREADABLE_REPLY_MESSAGE)

    return data


def _clean_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() == "null":
        return None
    return text


def _positive_int(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _priced_item(
    name: str,
    quantity: int,
    notes: Optional[str],
    menu_item: Any,
    unit_price: float,
    vat_rate: float,
) -> ParsedItem:
    total_price = unit_price * quantity
    return ParsedItem(
        name=name,
        quantity=quantity,
        notes=notes,
        menu_item=menu_item,
        unit_price=unit_price,
        total_price=total_price,
        vat_rate=int(round(vat_rate * 100)),
        vat_amount=total_price * vat_rate / (1 + vat_rate),
    )


def price_parsed_order(data: dict, menu_items: Sequence[Any], vat_rate: float) -> ParsedOrder:
    """
    Match the parsed items to the menu and compute prices.

    Matched items take the menu price; unmatched ones keep the AI's
    ``unitPrice`` (0 when missing). Quantities that are not positive
    integers count as 1.
    """
    items = []

    for raw in data["items"]:
        if not isinstance(raw, dict):
            continue
        name = _clean_text(raw.get("name")) or ""
        quantity = _positive_int(raw.get("quantity")) or 1
        menu_item = match_menu_item(name, menu_items)
        logger.debug(f"Matching {name!r} with menu item: {menu_item.name if menu_item else 'no match'}")

        unit_price = menu_item.price if menu_item is not None else _float(raw.get("unitPrice"))
        items.append(_priced_item(name, quantity, _clean_text(raw.get("notes")), menu_item, unit_price, vat_rate))

    subtotal = sum(item.total_price for item in items)
    return ParsedOrder(
        customer_name=_clean_text(data.get("customerName")),
        table_number=_positive_int(data.get("tableNumber")),
        special_instructions=_clean_text(data.get("specialInstructions")),
        items=items,
        subtotal=subtotal,
        total_vat=sum(item.vat_amount for item in items),
        grand_total=subtotal,
    )


def price_menu_lines(lines: Sequence[tuple[Any, int, Optional[str]]], vat_rate: float) -> list[ParsedItem]:
    """Price confirmed ``(menu_item, quantity, notes)`` lines at the menu price."""
    return [
        _priced_item(menu_item.name, quantity, notes, menu_item, menu_item.price, vat_rate)
        for menu_item, quantity, notes in lines
    ]


# =============================================================================
# PIPELINE
# =============================================================================

class VoiceOrderParser:
    """Runs a transcript through the AI backend and prices the result."""

    def __init__(self, ai_service: BaseAIService, vat_rate: Optional[float] = None):
        self.ai_service = ai_service
        self.vat_rate = get_settings().vat_rate if vat_rate is None else vat_rate

    async def parse(self, transcript: str, menu_items: Sequence[Any], user_id: str) -> ParsedOrder:
        """
        Parse ``transcript`` into a priced order.

        Raises:
            VoiceOrderError: On empty input, an AI failure, an unreadable
                reply, or when no item matches the menu
        """
        if not transcript or not transcript.strip():
            raise VoiceOrderError(EMPTY_TRANSCRIPT_MESSAGE)
        if not menu_items:
            raise VoiceOrderError(EMPTY_MENU_MESSAGE)

        prompt = build_order_prompt(transcript, menu_items, int(round(self.vat_rate * 100)))
        logger.info(f"Parsing voice order ({len(menu_items)} menu items) via {self.ai_service.provider_name}")

        result = await self.ai_service.send_message(prompt, user_id)
        if not result.success:
            raise VoiceOrderError(result.error_message or UNREADABLE_REPLY_MESSAGE)

        data = extract_json_object(result.answer)
        parsed = price_parsed_order(data, menu_items, self.vat_rate)

        if not parsed.matched_items:
            raise VoiceOrderError(NO_MATCH_MESSAGE)

        logger.info(
            f"Voice order parsed: {len(parsed.matched_items)}/{len(parsed.items)} items matched, "
            f"€{parsed.grand_total:.2f}"
        )
        return parsed
