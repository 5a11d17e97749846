"""Shopping skill. Find a product, then collect budget and shipping address.

Budget and address are remembered per user, so a returning shopper is
walked past those steps on their next message.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from stepflow.flow.step import Step
from stepflow.search.client import SearchError

if TYPE_CHECKING:
    from stepflow.connectors.base import IncomingMessage
    from stepflow.flow.sequencer import Sequencer
    from stepflow.search.client import Product, SearchClient

logger = logging.getLogger(__name__)

_AMOUNT_RE = re.compile(r"\$?\s*(\d+(?:\.\d{1,2})?)")
_YES = {"yes", "y", "ok", "okay", "sure", "confirm"}
_NO = {"no", "n", "cancel", "stop"}
_CHANGE = {"change", "forget"}


def parse_amount(text: str) -> int | None:
    """Parse '$25', '25.50' or 'about 40 bucks' into cents."""
    m = _AMOUNT_RE.search(text)
    if not m:
        return None
    return int(round(float(m.group(1)) * 100))


def format_price(cents: int) -> str:
    return f"${cents / 100:.2f}"


class ShoppingSkill:
    """Example skill wiring four steps plus a terminal receipt step."""

    def __init__(self, search: SearchClient | None = None, max_results: int = 3) -> None:
        self._search = search
        self._max_results = max_results

    @property
    def name(self) -> str:
        return "shopping"

    def build(self, sequencer: Sequencer) -> None:
        # Per-conversation scratch state, cleared on reset
        cart: dict = {}

        def reset(msg: IncomingMessage) -> None:
            cart.clear()

        # ── item ──

        def item_entry(msg: IncomingMessage) -> str:
            return "What are you shopping for?"

        def item_input(msg: IncomingMessage) -> None:
            cart["item"] = msg.text.strip()
            cart["products"] = self._find(cart["item"])
            sequencer.remember(msg, "last_query", cart["item"])

        def item_complete(msg: IncomingMessage) -> tuple[bool, str]:
            return bool(cart.get("item")), ""

        # ── budget ──

        def budget_entry(msg: IncomingMessage) -> str:
            products = cart.get("products") or []
            lines = [f"- {p.name} ({format_price(p.price)})" for p in products]
            prefix = "I found:\n" + "\n".join(lines) + "\n" if lines else ""
            return prefix + "What's your budget?"

        def budget_input(msg: IncomingMessage) -> None:
            cents = parse_amount(msg.text)
            if cents is None:
                cart["budget_error"] = msg.text.strip()
                return
            sequencer.remember(msg, "budget", cents)
            cart["budget_set"] = True

        def budget_complete(msg: IncomingMessage) -> tuple[bool, str]:
            if cart.get("budget_set"):
                return True, ""
            bad = cart.pop("budget_error", None)
            if bad is not None:
                return False, f"Sorry, I couldn't read a budget from {bad!r}. Try something like 40 or $25.50."
            return False, ""

        # ── address ──

        def address_entry(msg: IncomingMessage) -> str:
            return "Where should I ship it?"

        def address_input(msg: IncomingMessage) -> None:
            address = msg.text.strip()
            if address:
                sequencer.remember(msg, "address", address)
                cart["address_set"] = True

        def address_complete(msg: IncomingMessage) -> tuple[bool, str]:
            return bool(cart.get("address_set")), ""

        # ── confirm ──

        def confirm_entry(msg: IncomingMessage) -> str:
            budget = sequencer.recall(msg, "budget").as_int()
            address = sequencer.recall(msg, "address").as_str()
            choice = self._pick(cart.get("products") or [], budget)
            cart["choice"] = choice
            what = f"{choice.name} for {format_price(choice.price)}" if choice else cart.get("item", "your item")
            return (
                f"Order {what} (budget {format_price(budget)}), shipping to {address}. "
                "Confirm? (yes / no / change)"
            )

        def confirm_input(msg: IncomingMessage) -> None:
            answer = msg.text.strip().lower()
            if answer in _CHANGE:
                sequencer.forget(msg, "budget")
                sequencer.forget(msg, "address")
            cart["answer"] = answer

        def confirm_complete(msg: IncomingMessage) -> tuple[bool, str]:
            answer = cart.pop("answer", None)
            if answer in _YES:
                return True, ""
            if answer in _NO:
                return False, "Okay, I won't place it. Say 'yes' when you're ready."
            if answer in _CHANGE:
                return False, "Saved budget and address cleared. They'll be asked again next time."
            if answer is not None:
                return False, "Please answer yes, no or change."
            return False, ""

        # ── receipt ──

        def receipt_entry(msg: IncomingMessage) -> str:
            choice = cart.get("choice")
            what = choice.name if choice else cart.get("item", "your item")
            return f"Done! {what} is on its way."

        def receipt_input(msg: IncomingMessage) -> None:
            pass

        def receipt_complete(msg: IncomingMessage) -> tuple[bool, str]:
            return True, ""

        sequencer.set_reset_hook(reset)
        sequencer.set_steps(
            [
                Step(item_entry, item_input, item_complete),
                Step(budget_entry, budget_input, budget_complete, memory="budget"),
                Step(address_entry, address_input, address_complete, memory="address"),
            ],
            [
                Step(confirm_entry, confirm_input, confirm_complete),
                Step(receipt_entry, receipt_input, receipt_complete),
            ],
        )

    def close(self) -> None:
        """Close the search client, if one was given."""
        if self._search is not None:
            self._search.close()

    # ── Helpers ──────────────────────────────────────────────

    def _find(self, query: str) -> list[Product]:
        if self._search is None:
            return []
        try:
            return self._search.find_products(query, count=self._max_results)
        except SearchError as e:
            logger.error("Product search for %r failed: %s", query, e)
            return []

    @staticmethod
    def _pick(products: list[Product], budget: int) -> Product | None:
        """Cheapest product within budget, else None."""
        affordable = [p for p in products if p.price <= budget]
        return min(affordable, key=lambda p: p.price) if affordable else None
