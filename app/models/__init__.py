from app.models.user import User
from app.models.platform_admin import PlatformAdmin
from app.models.business import Business
from app.models.business_member import BusinessMember
from app.models.ticket import Ticket
from app.models.invite import Invite
from app.models.appointment import Appointment
from app.models.onboarding import OnboardingSubmission
from app.models.chat_experience import ChatExperience
from app.models.widget_settings import WidgetSettings
