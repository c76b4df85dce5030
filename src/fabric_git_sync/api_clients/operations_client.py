"""Operations API client for long-running operation state."""

from typing import List, Optional, Tuple

from ..models import OperationState
from .base_client import FabricAPIClient, response_json_object, validate_model


class OperationsAPIClient(FabricAPIClient):
    """Client for polling long-running operations."""

    def get_operation_state(
        self, operation_id: str
    ) -> Tuple[OperationState, Optional[List[str]]]:
        """Get operation state plus the raw Retry-After header values.

        Returns:
            Tuple of (state, Retry-After values or None when absent)
        """
        endpoint = f"/operations/{operation_id}"
        response = self.session.get(endpoint)
        state = validate_model(
            OperationState, response_json_object(response, endpoint), endpoint
        )
        retry_after = response.headers.get_list("Retry-After") or None
        return state, retry_after
