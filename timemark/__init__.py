import logging

from .bus import EventBus

# Configure logging for the timemark package
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:     %(name)s - %(message)s",
)

logging.getLogger("timemark").setLevel(logging.INFO)

event_bus = EventBus()
