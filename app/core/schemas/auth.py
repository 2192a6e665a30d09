from typing import Optional
from pydantic import BaseModel


# --- Internal Schema for Dependency ---
# This is what get_current_user returns to your routes
class CurrentUser(BaseModel):

    user_id: Optional[str] = None
    emp_id: str
    role: str
    role2: Optional[str] = None
    email: Optional[str] = None
    full_name: Optional[str] = None
    company_id: Optional[str] = None
