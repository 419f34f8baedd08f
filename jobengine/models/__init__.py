# Import models here so metadata.create_all() sees every table
from .base import Base  # noqa: F401
from .notification import Notification  # noqa: F401
from .rfq import Rfq  # noqa: F401
from .quote import Quote  # noqa: F401
