"""Service wiring.

One instance of each trust service per process, built at startup and
handed to routes and scripts. Nothing here is a module-level singleton.
"""

from dataclasses import dataclass

from souq_trust.services.event_queue import TrustEventQueue
from souq_trust.services.quality_scoring import QualityScoringService
from souq_trust.services.reviews import ReviewService
from souq_trust.services.trust_events import TrustEventsService
from souq_trust.services.trust_scoring import TrustScoringService
from souq_trust.settings import get_settings
from souq_trust.stores.postgres import SessionFactory, get_session
from souq_trust.stores.redis import NullResultCache, ResultCache


@dataclass
class TrustServices:
    quality_scoring: QualityScoringService
    trust_scoring: TrustScoringService
    reviews: ReviewService
    events: TrustEventsService
    queue: TrustEventQueue


def build_services(
    session_factory: SessionFactory = get_session,
    cache: ResultCache | None = None,
) -> TrustServices:
    """Construct the trust services around one store and one cache."""
    settings = get_settings()
    cache = cache or NullResultCache()

    queue = TrustEventQueue(max_size=settings.event_queue_max_size)
    quality_scoring = QualityScoringService(
        session_factory=session_factory,
        cache=cache,
        cache_ttl=settings.quality_score_cache_ttl,
    )
    trust_scoring = TrustScoringService(
        session_factory=session_factory,
        cache=cache,
        cache_ttl=settings.trust_metrics_cache_ttl,
    )
    reviews = ReviewService(session_factory=session_factory, events=queue)
    events = TrustEventsService(
        trust_scoring=trust_scoring,
        quality_scoring=quality_scoring,
        reviews=reviews,
        session_factory=session_factory,
    )
    queue.set_handler(events.dispatch)

    return TrustServices(
        quality_scoring=quality_scoring,
        trust_scoring=trust_scoring,
        reviews=reviews,
        events=events,
        queue=queue,
    )
