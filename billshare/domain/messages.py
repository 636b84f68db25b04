"""User-visible strings in the supported languages."""

from __future__ import annotations

DEFAULT_LANGUAGE = "en"

MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "default_person": "Person {n}",
        "default_item": "Item {n}",
        "summary_title": "Bill Summary:",
        "grand_total": "Grand Total",
        "unassigned_one": "Warning: {count} item has not been assigned.",
        "unassigned_other": "Warning: {count} items have not been assigned.",
        "uncovered": "Warning: {amount} of the receipt is not covered by anyone.",
        "extraction_overloaded": "The service is temporarily overloaded. Please wait a moment and try again.",
        "extraction_generic": (
            "Could not analyze the receipt. The image may be unclear or the service may be having issues. "
            "Please try again."
        ),
        "throttle_banned": (
            "You have been temporarily banned for too many requests. Please try again in {minutes} minutes."
        ),
        "throttle_session_limit": "You have reached the maximum of {limit} requests for this session.",
        "throttle_spam_ban": "Spam detected. You have been banned for {minutes} minutes.",
        "throttle_too_fast": "Please wait {seconds} seconds before making another request.",
    },
    "it": {
        "default_person": "Persona {n}",
        "default_item": "Prodotto {n}",
        "summary_title": "Riepilogo Conto:",
        "grand_total": "Totale Generale",
        "unassigned_one": "Attenzione: {count} articolo non è stato assegnato.",
        "unassigned_other": "Attenzione: {count} articoli non sono stati assegnati.",
        "uncovered": "Attenzione: {amount} dello scontrino non è coperto da nessuno.",
        "extraction_overloaded": (
            "Il servizio è momentaneamente sovraccarico. Per favore, attendi qualche istante e riprova."
        ),
        "extraction_generic": (
            "Non è stato possibile analizzare lo scontrino. L'immagine potrebbe non essere chiara "
            "o il servizio potrebbe avere problemi. Riprova."
        ),
        "throttle_banned": (
            "Sei stato temporaneamente bloccato per troppe richieste. Riprova tra {minutes} minuti."
        ),
        "throttle_session_limit": "Hai raggiunto il numero massimo di {limit} richieste per questa sessione.",
        "throttle_spam_ban": "Rilevato spam. Sei stato bloccato per {minutes} minuti.",
        "throttle_too_fast": "Attendi {seconds} secondi prima di fare un'altra richiesta.",
    },
}


def translate(language: str, key: str, **kwargs: object) -> str:
    """Look up ``key`` for ``language`` and fill in its placeholders.

    Unknown languages fall back to English. Unknown keys raise KeyError.
    """
    catalog = MESSAGES.get(language, MESSAGES[DEFAULT_LANGUAGE])
    return catalog[key].format(**kwargs)
