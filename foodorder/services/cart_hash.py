# foodorder/services/cart_hash.py
import hashlib
import json
from typing import Iterable

from foodorder.domain.schemas import ChoiceSelection


def normalize_selections(selections: Iterable[ChoiceSelection]) -> list[dict]:
    """
    Kanoniczna postac wyboru: unikalne opcje posortowane w grupie,
    grupy posortowane po id, puste grupy pominiete.
    Ta sama grupa podana dwa razy - opcje sa laczone.
    """
    merged: dict[str, set[str]] = {}
    for selection in selections:
        option_ids = {o.strip() for o in selection.option_ids if o and o.strip()}
        if not option_ids:
            continue
        merged.setdefault(selection.group_id, set()).update(option_ids)

    return [
        {"groupId": group_id, "optionIds": sorted(option_ids)}
        for group_id, option_ids in sorted(merged.items())
    ]


def generate_cart_item_hash(
    menu_item_id: str,
    selections: Iterable[ChoiceSelection],
    note: str | None,
) -> str:
    payload = json.dumps(
        {
            "menuItemId": menu_item_id,
            "selections": normalize_selections(selections),
            "note": (note or "").strip(),
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def generate_set_menu_hash(
    menu_item_id: str,
    selections: Iterable[tuple[str, str]],
    note: str | None,
) -> str:
    """
    Hash pozycji zestawu. selections to pary (rola, option_id), rola base|addon.
    Kolejnosc wyboru nie ma znaczenia, ta sama opcja w innej roli to inna konfiguracja.
    """
    parts = sorted(f"{role}:{option_id}" for role, option_id in set(selections))
    payload = "::".join(
        [
            f"item:{menu_item_id}",
            f"selections:{'|'.join(parts)}",
            f"note:{(note or '').strip()}",
        ]
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
