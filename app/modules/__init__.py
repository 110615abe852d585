"""Domain modules package."""

from app.modules.identity import models as identity_models  # noqa: F401
from app.modules.interviews import models as interviews_models  # noqa: F401
from app.modules.notifications import models as notifications_models  # noqa: F401
from app.modules.scheduling import models as scheduling_models  # noqa: F401
from app.modules.sync import models as sync_models  # noqa: F401
