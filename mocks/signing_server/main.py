import hashlib
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

app = FastAPI(title="Mock Signing Server", version="1.0.0")

MERCHANT_KEY = os.getenv("PAYU_MERCHANT_KEY", "test_key")
MERCHANT_SALT = os.getenv("PAYU_MERCHANT_SALT", "test_salt")
PAYU_BASE_URL = os.getenv("PAYU_BASE_URL", "https://test.payu.in/_payment")
# "rate_limit" | "unavailable" | "" -- simulate gateway trouble
FAILURE_MODE = os.getenv("MOCK_SIGNING_FAILURE_MODE", "")

REQUIRED = ("amount", "productinfo", "firstname", "email", "phone", "surl", "furl", "txnid")
UDF_FIELDS = [f"udf{i}" for i in range(1, 11)]


def payment_hash(params: dict, salt: str) -> str:
    """sha512(key|txnid|amount|productinfo|firstname|email|udf1..udf10|salt)"""
    parts = [params["key"], params["txnid"], params["amount"], params["productinfo"], params["firstname"], params["email"]]
    parts += [params[name] for name in UDF_FIELDS]
    parts.append(salt)
    return hashlib.sha512("|".join(parts).encode("utf-8")).hexdigest()


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/api/payu-hash")
async def payu_hash(request: Request):
    mode = request.headers.get("X-Mock-Failure", FAILURE_MODE)
    if mode == "rate_limit":
        return PlainTextResponse("Too many Requests", status_code=429)
    if mode == "unavailable":
        return PlainTextResponse("", status_code=503)

    body = await request.json()
    if any(not body.get(name) for name in REQUIRED):
        return JSONResponse(status_code=400, content={"error": "Missing required payment parameters"})

    params = {"key": MERCHANT_KEY, **{name: str(body[name]) for name in REQUIRED}}
    params.update({name: str(body.get(name, "")) for name in UDF_FIELDS})
    for name in ("si", "si_details"):
        if body.get(name):
            params[name] = str(body[name])

    return JSONResponse(content={**params, "hash": payment_hash(params, MERCHANT_SALT), "payuBaseUrl": PAYU_BASE_URL})
