from .alerts import router as alerts
from .auth import router as auth
from .browser import router as browser
from .download import router as download
from .files import router as files
from .imports import router as imports
from .notifications import router as notifications
from .quick_links import router as quick_links
