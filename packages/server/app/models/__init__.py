# SQLModel definitions — imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, CreatedAtMixin, TimestampMixin  # noqa: F401
from .pricing import Pricing, PricingOption, PricingFeature  # noqa: F401
from .user import User  # noqa: F401
from .document import UserDocument  # noqa: F401
from .club import Club, Coach  # noqa: F401
from .channel import MessageChannel, ChannelMember  # noqa: F401
from .message import Message, MessageReaction, MessageView  # noqa: F401
from .notification import Notification  # noqa: F401
