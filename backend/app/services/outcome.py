"""Outcome reporter — PipelineOutcome → HTTP response for the detected shape.

Envelope callers always receive HTTP 200 with a single result string, since
the voice transport drops any other status without relaying its text. Direct
callers receive a structured body with a status reflecting the category.
"""
from fastapi import status
from fastapi.responses import JSONResponse

from app.services.envelope import CallShape
from app.services.errors import RequestValidationFailed
from app.services.scheduling_service import PipelineOutcome
from app.schemas.scheduling import CreateEventResponse, ToolCallResponse, ToolCallResult


def success_sentence(outcome: PipelineOutcome) -> str:
    start = outcome.interval.start
    hour = start.hour % 12 or 12
    when = f"{start:%A, %B} {start.day}, {start.year} at {hour}:{start:%M %p}"
    return (
        f'Done! "{outcome.request.effective_title}" is booked for {when} '
        f"({outcome.interval.timezone}). Calendar link: {outcome.created.event_link}"
    )


def result_text(outcome: PipelineOutcome) -> str:
    if outcome.ok:
        return success_sentence(outcome)
    return outcome.error.message


def _envelope_response(outcome: PipelineOutcome) -> JSONResponse:
    body = ToolCallResponse(results=[
        ToolCallResult(tool_call_id=outcome.call.tool_call_id, result=result_text(outcome)),
    ])
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.model_dump(by_alias=True))


def _direct_response(outcome: PipelineOutcome) -> JSONResponse:
    if outcome.ok:
        body = CreateEventResponse(
            ok=True,
            event_id=outcome.created.event_id,
            event_link=outcome.created.event_link,
            summary=outcome.request.effective_title,
            start_iso=outcome.interval.start.isoformat(),
            end_iso=outcome.interval.end.isoformat(),
            timezone=outcome.interval.timezone,
        )
        code = status.HTTP_201_CREATED
    elif isinstance(outcome.error, RequestValidationFailed):
        body = CreateEventResponse(ok=False, error="Validation failed", details=outcome.error.details)
        code = outcome.error.http_status
    else:
        body = CreateEventResponse(ok=False, error=outcome.error.message)
        code = outcome.error.http_status
    return JSONResponse(status_code=code, content=body.model_dump(by_alias=True, exclude_none=True))


def build_response(outcome: PipelineOutcome) -> JSONResponse:
    if outcome.call.shape is CallShape.envelope:
        return _envelope_response(outcome)
    return _direct_response(outcome)
