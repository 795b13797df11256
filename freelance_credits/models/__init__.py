from freelance_credits.models.applied_project import AppliedProject
from freelance_credits.models.credit_setting import CreditSetting
from freelance_credits.models.credit_transaction import CreditTransaction
from freelance_credits.models.freelancer_profile import FreelancerProfile
from freelance_credits.models.project_task import ProjectTask
from freelance_credits.models.user import User

__all__ = [
    "AppliedProject",
    "CreditSetting",
    "CreditTransaction",
    "FreelancerProfile",
    "ProjectTask",
    "User",
]
