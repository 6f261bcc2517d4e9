"""
Chronicle — Project Journey Contribution & Engagement Analytics
================================================================
Decides who may add a timeline entry to a project's journey, which
moderation state it enters, how contributions are throttled, who gets
notified, and keeps derived journey statistics and user badges in step
with the entry history.

Package layout::

    chronicle/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Notification copy, interaction actions, UTC helpers
    ├── errors.py          # Unauthorized / RateLimited / NotFound / ValidationError
    ├── schemas.py         # Pydantic drafts, edits, filters
    ├── core.py            # JourneyCore — async facade over the services
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # ORM models + closed enumerations
    ├── engine/
    │   ├── policy.py      # Collaboration-mode decision table
    │   ├── mentions.py    # @handle extraction
    │   ├── stats.py       # Journey stats fold + pairwise-gap streak
    │   └── badges.py      # Badge tracks, progress math, day-set streak
    └── services/
        ├── directory_service.py     # Project / collaborator / handle lookups
        ├── throttle.py              # Contribution rate limiter
        ├── notification_service.py  # Notices, sinks, fire-and-forget dispatcher
        ├── stats_service.py         # journey_stats rollup maintenance
        ├── journey_service.py       # Entry lifecycle controller
        └── badge_service.py         # Badge/streak data gathering
"""

__version__ = "0.1.0"
