"""API endpoints for triggering processing on demand."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Header, Depends
from pydantic import BaseModel

from verifier.errors import VerifierError
from verifier.server.runtime import in_scope, process_pr, run_full_scan


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["api"])


class ProcessRequest(BaseModel):
    """Request body for processing one PR."""

    repo: str
    pr_number: int


class ProcessResponse(BaseModel):
    """Outcome of processing one PR."""

    status: str  # "success" or "error"
    pr: str = ""
    stage: str = ""
    labels_added: list[str] = []
    labels_removed: list[str] = []
    comment_posted: bool = False
    status_set: bool = False
    error: Optional[str] = None


class ScanResponse(BaseModel):
    """Outcome of a full scan."""

    considered: int
    processed: list[str] = []
    errors: dict[str, str] = {}


async def verify_github_token(
    authorization: Optional[str] = Header(None),
    x_github_token: Optional[str] = Header(None),
) -> str:
    """Extract and verify GitHub token from headers.

    Accepts token in either:
    - Authorization: Bearer <token>
    - X-GitHub-Token: <token>
    """
    token = None

    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:]
    elif x_github_token:
        token = x_github_token

    if not token:
        raise HTTPException(
            status_code=401,
            detail="GitHub token required. Use 'Authorization: Bearer <token>' or 'X-GitHub-Token: <token>'",
        )

    return token


@router.post("/process", response_model=ProcessResponse)
async def process(
    request: ProcessRequest,
    github_token: str = Depends(verify_github_token),
) -> ProcessResponse:
    """Process a single PR and return what changed."""
    if len(request.repo.split("/")) != 2:
        raise HTTPException(status_code=400, detail="repo must be in owner/repo format")
    if not in_scope(request.repo):
        raise HTTPException(status_code=403, detail=f"{request.repo} is not configured")

    logger.info(f"Process request for PR #{request.pr_number} in {request.repo}")
    result = await process_pr(request.repo, request.pr_number, token=github_token)
    return ProcessResponse(**result)


@router.post("/scan", response_model=ScanResponse)
async def scan(github_token: str = Depends(verify_github_token)) -> ScanResponse:
    """Run a full scan of the configured scope."""
    logger.info("Full scan requested")
    try:
        report = await run_full_scan(token=github_token)
    except VerifierError as e:
        logger.exception("Full scan failed")
        raise HTTPException(status_code=502, detail=str(e))
    return ScanResponse(**report.to_dict())
