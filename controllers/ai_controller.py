import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from helpers.dependencies import get_text_generator
from helpers.errors import AuditError, GenerationFailed
from helpers.prompts import build_description_prompt, build_recommendations_prompt
from helpers.text_generator import TextGenerator

router = APIRouter()
logger = logging.getLogger("ai")


class RecommendationsIn(BaseModel):
    summary: Optional[Dict[str, Any]] = None
    object_type: Optional[str] = Field(default=None, alias="objectType")


class DescriptionIn(BaseModel):
    label: Optional[str] = None
    internal_name: Optional[str] = Field(default=None, alias="internalName")
    type: Optional[str] = None


@router.post("/generate-recommendations")
async def generate_recommendations(
    body: RecommendationsIn,
    generator: Annotated[TextGenerator, Depends(get_text_generator)],
):
    if not body.summary or not body.object_type:
        raise AuditError("Audit summary and object type are required.", status_code=400)

    prompt = build_recommendations_prompt(body.summary, body.object_type)
    try:
        text = await generator.generate(prompt)
    except GenerationFailed as e:
        logger.error("recommendations failed object=%s: %s", body.object_type, e)
        raise GenerationFailed("Failed to generate AI recommendations.") from e
    return {"recommendations": text}


@router.post("/generate-description")
async def generate_description(
    body: DescriptionIn,
    generator: Annotated[TextGenerator, Depends(get_text_generator)],
):
    if not body.label or not body.internal_name or not body.type:
        raise AuditError("Property details are required.", status_code=400)

    prompt = build_description_prompt(body.label, body.internal_name, body.type)
    try:
        text = await generator.generate(prompt)
    except GenerationFailed as e:
        logger.error("description failed property=%s: %s", body.internal_name, e)
        raise GenerationFailed("Failed to generate AI description.") from e
    return {"description": text.strip()}
