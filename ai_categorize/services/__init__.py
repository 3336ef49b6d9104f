"""Services package: persistent queue and cache stores plus the Firefly and SearXNG clients."""

from .cache_store import CacheStore  # noqa: F401
from .firefly import FireflyClient, FireflyError  # noqa: F401
from .queue_store import JobQueueStore  # noqa: F401
from .searxng import SearxngClient  # noqa: F401
