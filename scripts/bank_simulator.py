"""Local acquiring bank simulator.

Decides on the last digit of the card number: odd authorizes, even declines,
zero answers 503. Run with `uvicorn scripts.bank_simulator:app --port 8080`.
"""

from uuid import uuid4

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

app = FastAPI(title="Acquiring Bank Simulator")


class SimulatedPayment(BaseModel):
    card_number: str
    expiry_date: str
    currency: str
    amount: int
    cvv: str


@app.post("/payments")
def payments(req: SimulatedPayment):
    """Return a canned decision keyed on the card's last digit."""

    last_digit = req.card_number[-1:] if req.card_number else ""
    if not last_digit.isdigit():
        return JSONResponse(status_code=400, content={"error": "card number must end with a digit"})
    if last_digit == "0":
        return JSONResponse(status_code=503, content={"error": "bank down"})
    if int(last_digit) % 2 == 1:
        return {"authorized": True, "authorization_code": str(uuid4())}
    return {"authorized": False, "authorization_code": None}
