"""
Snippet management endpoints (admin only).

Audio files are stored by an external upload handler; these endpoints
manage the metadata the survey assigns and aggregates over.
"""
from typing import List

from fastapi import APIRouter, Depends, status

from cough_survey.api.v1.deps import get_snippet_store, verify_admin_token
from cough_survey.core.snippets import SnippetStore
from cough_survey.schemas.snippets import SnippetCreate, SnippetResponse

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("", response_model=List[SnippetResponse])
def list_snippets(store: SnippetStore = Depends(get_snippet_store)):
    """List all snippets, most recently uploaded first."""
    return [SnippetResponse.model_validate(s) for s in store.list()]


@router.post("", response_model=SnippetResponse, status_code=status.HTTP_201_CREATED)
def create_snippet(
    payload: SnippetCreate,
    store: SnippetStore = Depends(get_snippet_store),
):
    """
    Register an uploaded snippet.

    The MIME type must be MP3 or WAV and the duration between 2 and 10
    seconds; anything else is rejected with 422.
    """
    snippet = store.create(payload.to_meta())
    return SnippetResponse.model_validate(snippet)


@router.get("/{snippet_id}", response_model=SnippetResponse)
def get_snippet(snippet_id: int, store: SnippetStore = Depends(get_snippet_store)):
    return SnippetResponse.model_validate(store.get_by_id(snippet_id))


@router.delete("/{snippet_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_snippet(snippet_id: int, store: SnippetStore = Depends(get_snippet_store)):
    """
    Delete a snippet.

    Existing responses are kept as orphans unless SNIPPET_DELETE_CASCADE
    is enabled.
    """
    store.delete(snippet_id)
