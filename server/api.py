"""FastAPI server exposing the outfit composition pipeline."""

from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field

from closet_app.app import ClosetStylistApp
from closet_app.logging_config import configure_logging
from models.failures import FailureCode, PipelineError
from models.selection import ManualPicks, SelectionMode
from models.suggestion import SuggestionResult

configure_logging()

app = FastAPI(title="Closet Stylist", version="0.1.0")

_STATUS_BY_CODE = {
    FailureCode.PROFILE_REQUIRED: 400,
    FailureCode.INSUFFICIENT_WARDROBE: 400,
    FailureCode.ITEM_NOT_OWNED: 404,
    FailureCode.NO_REFERENCE_IMAGES: 422,
    FailureCode.INVALID_SELECTION: 422,
}


@lru_cache(maxsize=1)
def get_stylist_app() -> ClosetStylistApp:
    """Build the shared app lazily so importing this module stays cheap."""

    return ClosetStylistApp()


class ComposeRequest(BaseModel):
    """Request payload for an outfit suggestion."""

    user_id: str = Field(..., min_length=1, description="Authenticated user identifier")
    mode: SelectionMode = SelectionMode.AUTOMATIC
    weather: str = ""
    occasion: str = ""
    dress_id: str | None = Field(None, alias="dressId")
    top_id: str | None = Field(None, alias="topId")
    bottom_id: str | None = Field(None, alias="bottomId")
    shoes_id: str | None = Field(None, alias="shoesId")
    extra_instruction: str | None = Field(None, description="Free text appended to the render prompt")

    model_config = {"populate_by_name": True}

    def picks(self) -> ManualPicks:
        return ManualPicks(
            dress_id=self.dress_id,
            top_id=self.top_id,
            bottom_id=self.bottom_id,
            shoes_id=self.shoes_id,
        )


class AnalysisRequest(BaseModel):
    user_id: str = Field(..., min_length=1)


class AutoTagRequest(BaseModel):
    image: str = Field(..., min_length=1, description="Image URL, data URI or bare base64 JPEG")


def _respond(result: SuggestionResult | PipelineError) -> dict:
    if isinstance(result, PipelineError):
        raise HTTPException(status_code=_STATUS_BY_CODE.get(result.code, 400), detail=result.as_dict())
    return result.as_dict()


@app.get("/healthz")
def healthcheck(stylist: ClosetStylistApp = Depends(get_stylist_app)) -> dict:
    """Lightweight readiness check."""

    return {
        "status": "ok",
        "service": "closet-stylist",
        "environment": stylist.config.environment or "local",
        "reasoning_provider": stylist.config.reasoning_provider,
    }


@app.post("/outfits/compose")
def compose_outfit(request: ComposeRequest, stylist: ClosetStylistApp = Depends(get_stylist_app)) -> dict:
    """Suggest an outfit and render a try-on preview."""

    result = stylist.compose_outfit(
        user_id=request.user_id,
        mode=request.mode,
        picks=request.picks(),
        occasion=request.occasion,
        weather=request.weather,
        extra_instruction=request.extra_instruction,
    )
    return _respond(result)


@app.post("/outfits/try-on")
def try_on(request: ComposeRequest, stylist: ClosetStylistApp = Depends(get_stylist_app)) -> dict:
    """Render explicitly chosen garments on the user."""

    result = stylist.try_on(
        user_id=request.user_id,
        picks=request.picks(),
        occasion=request.occasion,
        extra_instruction=request.extra_instruction,
    )
    return _respond(result)


@app.post("/wardrobe/analysis")
def analyze_wardrobe(request: AnalysisRequest, stylist: ClosetStylistApp = Depends(get_stylist_app)) -> dict:
    response = stylist.analyze_wardrobe(user_id=request.user_id)
    if response.get("status") != "ok":
        raise HTTPException(status_code=400, detail=response)
    return response


@app.post("/garments/auto-tag")
def auto_tag(request: AutoTagRequest, stylist: ClosetStylistApp = Depends(get_stylist_app)) -> dict:
    """Suggest attributes for a garment photo before it is saved."""

    response = stylist.auto_tag(image=request.image)
    if response.get("status") != "ok":
        raise HTTPException(status_code=400, detail=response)
    return response


@app.get("/renderer/status")
def renderer_status(stylist: ClosetStylistApp = Depends(get_stylist_app)) -> dict:
    return stylist.renderer_status()


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:app", host="0.0.0.0", port=8080, reload=False)
