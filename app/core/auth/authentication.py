from app.core.setting import config
from app.core.models.user import UserAccount

SECRET_KEY = config.SECRET_KEY
ALGORITHM = config.ALGORITHM


class AuthService:

    @staticmethod
    async def get_full_user_data(emp_id: str):
        """
        Fetches the UserAccount.
        Used by get_current_user dependency.
        """
        login = await UserAccount.find_one(
            UserAccount.emp_id == emp_id,
            UserAccount.is_active == True
        )
        if not login:
            return None

        return {
            "user_id": str(login.id),
            "emp_id": login.emp_id,
            "full_name": login.full_name,
            "email": login.email,
            "role": login.role.value,
            "role2": login.role2,
            "company_id": str(login.company_id) if login.company_id else None,
        }
