"""
HTTP API for the Arc Pay frontend.

Run: arcpay serve, or uvicorn --factory arcpay.server:create_app.
Every response is JSON with camelCase keys; errors are {"error": message}.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Body, FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from arcpay import __version__
from arcpay.config import ArcPayConfig
from arcpay.errors import (
    ArcPayError,
    NotFoundError,
    PaymentError,
    SubscriptionInactiveError,
    ValidationError,
)
from arcpay.flow import ContentPaymentFlow
from arcpay.payments import PaymentProvider, get_payment_provider
from arcpay.schema import (
    ContentItem,
    PreferencesUpdate,
    RecommendationRequest,
    SubscriptionRequest,
    TipRequest,
)
from arcpay.scoring import Scorer, get_scorer
from arcpay.storage import Stores, build_stores
from arcpay.subscriptions import SubscriptionService
from arcpay.wallets import WalletRegistry

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (SubscriptionInactiveError, 409),
    (PaymentError, 502),
]


def _error_response(exc: ArcPayError) -> JSONResponse:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return JSONResponse({"error": str(exc)}, status_code=status)
    return JSONResponse({"error": str(exc)}, status_code=500)


def create_app(
    config: Optional[ArcPayConfig] = None,
    stores: Optional[Stores] = None,
    scorer: Optional[Scorer] = None,
    payments: Optional[PaymentProvider] = None,
) -> FastAPI:
    """Wire services and routes. Pass collaborators explicitly in tests."""
    config = config or ArcPayConfig.from_env()
    stores = stores or build_stores(config)
    scorer = scorer or get_scorer(config)
    payments = payments or get_payment_provider(config)

    wallets = WalletRegistry(stores.preferences, payments)
    flow = ContentPaymentFlow(stores, scorer, wallets, config)
    subscriptions = SubscriptionService(stores.subscriptions, wallets)

    app = FastAPI(title="Arc Pay", version=__version__)
    app.state.config = config
    app.state.flow = flow
    app.state.subscriptions = subscriptions
    app.state.wallets = wallets

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.exception_handler(ArcPayError)
    async def _arcpay_error(request: Request, exc: ArcPayError) -> JSONResponse:
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        # echoed inputs may be NaN or inf, which JSON cannot carry
        details = [{k: v for k, v in e.items() if k not in ("input", "ctx")} for e in exc.errors()]
        return JSONResponse(
            {"error": "Invalid request body", "details": jsonable_encoder(details)}, status_code=400
        )

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Internal server error", "message": str(exc)}, status_code=500)

    @app.get("/health")
    def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "environment": config.environment,
            "scorer": scorer.name,
            "payments": payments.name,
        }

    @app.get("/api/users/{user_id}/preferences")
    def get_preferences(user_id: str):
        prefs = flow.preferences.get(user_id)
        if prefs is None:
            raise NotFoundError("Preferences not found")
        return {"success": True, "preferences": prefs.to_wire()}

    @app.post("/api/users/{user_id}/preferences")
    def set_preferences(user_id: str, changes: PreferencesUpdate = Body(...)):
        prefs = flow.preferences.update(user_id, changes)
        return {"success": True, "message": "Preferences saved", "preferences": prefs.to_wire()}

    @app.post("/api/users/{user_id}/content/process")
    def process_content(user_id: str, content: ContentItem = Body(...)):
        result = flow.process_content(user_id, content)
        return {"success": True, **result.model_dump(mode="json", by_alias=True, exclude_none=True)}

    @app.post("/api/users/{user_id}/recommendations")
    def recommendations(user_id: str, body: RecommendationRequest = Body(...)):
        items = flow.recommend(user_id, body.content)
        return {"success": True, "recommendations": [i.to_wire() for i in items]}

    @app.post("/api/users/{user_id}/tip")
    def send_tip(user_id: str, body: TipRequest = Body(...)):
        tx = flow.send_tip(user_id, body.creator_address, body.amount)
        return {"success": True, "message": "Tip sent successfully", "transaction": tx.to_wire()}

    @app.get("/api/users/{user_id}/subscriptions")
    def list_subscriptions(user_id: str):
        subs = subscriptions.list_for_user(user_id)
        return {"success": True, "subscriptions": [s.to_wire() for s in subs]}

    @app.post("/api/users/{user_id}/subscriptions")
    def create_subscription(user_id: str, body: SubscriptionRequest = Body(...)):
        sub = subscriptions.create(user_id, body.creator_address, body.amount)
        return {"success": True, "message": "Subscription created", "subscription": sub.to_wire()}

    def _owned_subscription(user_id: str, subscription_id: str):
        sub = subscriptions.get(subscription_id)
        if sub is None or sub.user_id != user_id:
            raise NotFoundError("Subscription not found")
        return sub

    @app.post("/api/users/{user_id}/subscriptions/{subscription_id}/cancel")
    def cancel_subscription(user_id: str, subscription_id: str):
        _owned_subscription(user_id, subscription_id)
        subscriptions.cancel(subscription_id)
        return {"success": True, "subscription": _owned_subscription(user_id, subscription_id).to_wire()}

    @app.post("/api/users/{user_id}/subscriptions/{subscription_id}/reactivate")
    def reactivate_subscription(user_id: str, subscription_id: str):
        _owned_subscription(user_id, subscription_id)
        subscriptions.reactivate(subscription_id)
        return {"success": True, "subscription": _owned_subscription(user_id, subscription_id).to_wire()}

    @app.get("/api/users/{user_id}/spending")
    def spending(user_id: str):
        return {"success": True, "spending": flow.spending_summary(user_id).to_wire()}

    @app.get("/api/users/{user_id}/transactions")
    def transactions(user_id: str):
        records = flow.list_transactions(user_id)
        return {"success": True, "transactions": [r.to_wire() for r in records]}

    @app.get("/api/users/{user_id}/wallet")
    def wallet(user_id: str):
        w = wallets.get_or_create(user_id)
        return {
            "success": True,
            "wallet": w.to_wire(),
            "balance": payments.get_balance(w.wallet_id),
        }

    return app

