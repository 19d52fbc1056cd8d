from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import Response

from plm.core.config import settings
from plm.core.errors import register_exception_handlers
from plm.routers import models, notifications, pps_approvals, stage_comments

OPENAPI_TAGS = [
    {"name": "Models", "description": "Create, edit and move garment models through the workflow."},
    {"name": "Approvals", "description": "Record PPS approvals and their attachments."},
    {"name": "Stage Comments", "description": "Review comments on the DS and PPS stages."},
    {"name": "Notifications", "description": "Query the notification delivery audit trail."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Product lifecycle backend for apparel models: status workflow, "
        "PPS dual approval, and role-based notifications."
    ),
    openapi_tags=OPENAPI_TAGS,
)

register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def options_handler(request: Request, call_next):  # type: ignore[no-untyped-def]
    if request.method == "OPTIONS":
        origin = request.headers.get("origin", "*")
        return Response(
            status_code=200,
            headers={
                "Access-Control-Allow-Origin": origin,
                "Access-Control-Allow-Methods": "*",
                "Access-Control-Allow-Headers": "*",
                "Access-Control-Allow-Credentials": "true",
                "Access-Control-Max-Age": "86400",
            },
        )
    return await call_next(request)


app.include_router(models.router, prefix="/v1/models", tags=["Models"])
app.include_router(pps_approvals.router, prefix="/v1/pps_approvals", tags=["Approvals"])
app.include_router(stage_comments.router, prefix="/v1/stage_comments", tags=["Stage Comments"])
app.include_router(notifications.router, prefix="/v1/notifications", tags=["Notifications"])
