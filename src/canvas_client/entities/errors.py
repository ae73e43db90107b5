from typing import Dict, List, Optional

from pydantic import BaseModel


class Error(BaseModel):
    """A single error reported by Canvas."""
    attribute: Optional[str] = None
    type: Optional[str] = None
    message: Optional[str] = None


class ErrorResponseList(BaseModel):
    """Error payload in the form ``{"errors": [...]}``."""
    errors: List[Error]


class ErrorResponseDictionary(BaseModel):
    """Error payload in the form ``{"errors": {"field": [...]}}``."""
    errors: Dict[str, List[Error]]

    def flatten(self) -> List[Error]:
        return [error for errors in self.errors.values() for error in errors]
