"""FastAPI server exposing one in-memory bill session to a local browser UI."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from billshare.application.extraction import ReceiptExtractionRequest, run_receipt_extraction_async
from billshare.application.session import BillSession, ItemBusyError
from billshare.domain.bill import Item, Participant, find_item, find_participant
from billshare.domain.summary import format_money
from billshare.runtime import get_logger
from billshare.util.amounts import format_amount, parse_amount

logger = get_logger(__name__)


class ItemFields(BaseModel):
    name: str | None = None
    quantity: str | float | None = None
    unit_price: str | float | None = None


class ParticipantFields(BaseModel):
    name: str | None = None


class CalculatorKey(BaseModel):
    key: str


def _amount(raw: str | float | None, previous: Decimal) -> Decimal:
    if raw is None:
        return previous
    parsed = parse_amount(str(raw), previous)
    return previous if parsed is None else parsed


def _item_json(item: Item) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "quantity": str(item.quantity),
        "unit_price": str(item.unit_price),
        "line_total": format_amount(item.line_total),
    }


def _participant_json(participant: Participant) -> dict[str, Any]:
    return {
        "id": participant.id,
        "name": participant.name,
        "assignments": {item_id: float(share) for item_id, share in participant.assignments.items()},
    }


def session_json(session: BillSession) -> dict[str, Any]:
    """Everything a UI needs to render the session."""
    summary = session.summary()
    symbol = session.settings.currency_symbol
    return {
        "language": session.language,
        "items": [_item_json(item) for item in session.state.items],
        "participants": [_participant_json(p) for p in session.state.participants],
        "busy_items": sorted(session.busy_items),
        "highlighted": dict(session.highlighted),
        "summary": {
            "participants": [
                {"id": t.participant_id, "name": t.name, "total": format_money(t.total, symbol)}
                for t in summary.participants
            ],
            "grand_total": format_money(summary.grand_total, symbol),
            "unassigned_items": [item.id for item in summary.unassigned_items],
        },
        "warnings": session.warnings(),
        "error": session.current_error,
        "calculator": {
            "expression": session.calculator.expression,
            "last_expression": session.calculator.last_expression,
            "history": list(session.calculator.history),
            "is_result": session.calculator.is_result,
        },
    }


def create_app(session: BillSession | None = None) -> FastAPI:
    """Build the app around a session (a fresh one by default)."""
    bill_session = session if session is not None else BillSession()
    app = FastAPI(title="Bill Splitter")
    app.state.session = bill_session

    @app.exception_handler(ItemBusyError)
    async def _busy(request: Request, exc: ItemBusyError) -> JSONResponse:
        return JSONResponse({"status": "error", "message": str(exc), "item_id": exc.item_id}, status_code=409)

    def _require_item(item_id: str) -> Item:
        item = find_item(bill_session.state, item_id)
        if item is None:
            raise HTTPException(status_code=404, detail=f"Unknown item: {item_id}")
        return item

    def _require_participant(participant_id: str) -> Participant:
        participant = find_participant(bill_session.state, participant_id)
        if participant is None:
            raise HTTPException(status_code=404, detail=f"Unknown participant: {participant_id}")
        return participant

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def get_session() -> dict[str, Any]:
        return session_json(bill_session)

    @app.post("/reset")
    async def reset() -> dict[str, Any]:
        bill_session.reset()
        return session_json(bill_session)

    # --- Items ---

    @app.post("/items", status_code=201)
    async def add_item(fields: ItemFields) -> dict[str, Any]:
        item = bill_session.add_item(
            name=fields.name,
            quantity=_amount(fields.quantity, Decimal("1")),
            unit_price=_amount(fields.unit_price, Decimal("0")),
        )
        return _item_json(item)

    @app.patch("/items/{item_id}")
    async def update_item(item_id: str, fields: ItemFields) -> dict[str, Any]:
        item = _require_item(item_id)
        bill_session.update_item(
            item_id,
            name=fields.name,
            quantity=_amount(fields.quantity, item.quantity),
            unit_price=_amount(fields.unit_price, item.unit_price),
        )
        return _item_json(_require_item(item_id))

    @app.delete("/items/{item_id}", status_code=204)
    async def remove_item(item_id: str) -> Response:
        bill_session.remove_item(item_id)
        return Response(status_code=204)

    # --- Participants ---

    @app.post("/participants", status_code=201)
    async def add_participant(fields: ParticipantFields) -> dict[str, Any]:
        return _participant_json(bill_session.add_participant(fields.name))

    @app.patch("/participants/{participant_id}")
    async def rename_participant(participant_id: str, fields: ParticipantFields) -> dict[str, Any]:
        _require_participant(participant_id)
        if fields.name is not None:
            bill_session.rename_participant(participant_id, fields.name)
        return _participant_json(_require_participant(participant_id))

    @app.delete("/participants/{participant_id}", status_code=204)
    async def remove_participant(participant_id: str) -> Response:
        bill_session.remove_participant(participant_id)
        return Response(status_code=204)

    # --- Assignment ---

    @app.post("/items/{item_id}/claims/{participant_id}")
    async def toggle_claim(item_id: str, participant_id: str) -> dict[str, Any]:
        bill_session.toggle_claim(participant_id, item_id)
        return session_json(bill_session)

    @app.post("/items/{item_id}/split")
    async def split_item(item_id: str) -> dict[str, Any]:
        bill_session.split_item_evenly(item_id)
        return session_json(bill_session)

    @app.post("/split-all")
    async def split_all() -> dict[str, Any]:
        bill_session.split_all_evenly()
        return session_json(bill_session)

    @app.post("/items/{item_id}/random", status_code=202)
    async def assign_randomly(item_id: str) -> dict[str, Any]:
        task = bill_session.start_random_assignment(item_id)
        return {"status": "started" if task is not None else "skipped", "item_id": item_id}

    # --- Summary ---

    @app.get("/summary.txt", response_class=PlainTextResponse)
    async def summary_text() -> str:
        return bill_session.summary_text()

    # --- Calculator ---

    @app.post("/calculator")
    async def press_calculator(body: CalculatorKey) -> dict[str, Any]:
        try:
            bill_session.press_calculator(body.key)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return session_json(bill_session)["calculator"]

    # --- Receipts ---

    @app.post("/receipts")
    async def upload_receipt(request: Request) -> JSONResponse:
        """Receive a receipt photo, extract its items and merge them into the bill."""
        form = await request.form()

        file = None
        for key, value in form.items():
            logger.debug("Form field: key=%r, type=%s", key, type(value))
            if hasattr(value, "read"):
                file = value
                break

        if not file:
            return JSONResponse({"status": "error", "message": "No file found in request"}, status_code=400)

        append = str(form.get("append", "")).lower() in {"1", "true", "yes", "on"}
        contents = await file.read()
        result = await run_receipt_extraction_async(
            bill_session,
            ReceiptExtractionRequest(
                image_bytes=contents,
                filename=getattr(file, "filename", None) or "receipt.jpg",
                append=append,
                extractor=getattr(app.state, "extractor", None),
            ),
        )

        if result.error is not None:
            status_code = 429 if result.status == "throttled" else 502
            return JSONResponse({"status": result.status, "message": result.error}, status_code=status_code)
        return JSONResponse({"status": result.status, "items_added": result.items_added})

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="127.0.0.1", port=8000)
