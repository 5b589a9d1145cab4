"""Select collaborator adapters for the configured backend."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from readtrack.adapters.http.click_log import HttpClickLogAdapter
from readtrack.adapters.http.interaction_log import HttpInteractionLogAdapter
from readtrack.adapters.http.recommender import HttpRecommenderAdapter
from readtrack.adapters.mock.interaction_log import MockInteractionLogAdapter
from readtrack.adapters.mock.recommender import MockRecommenderAdapter
from readtrack.config import CollaboratorBackend, Settings
from readtrack.ports.click_log import ClickLogPort
from readtrack.ports.interaction_log import InteractionLogPort
from readtrack.ports.recommender import RecommenderPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Collaborators:
    interaction_log: InteractionLogPort
    recommender: RecommenderPort
    click_log: ClickLogPort


CollaboratorFactory = Callable[[str], Collaborators]


def build_collaborator_factory(settings: Settings) -> CollaboratorFactory:
    """Return a per-visitor factory for the configured backend."""
    if settings.collaborator_backend is CollaboratorBackend.MOCK:
        log = MockInteractionLogAdapter()
        recommender = MockRecommenderAdapter()
        shared = Collaborators(interaction_log=log, recommender=recommender, click_log=log)
        logger.info("Using mock collaborators")
        return lambda visitor_id: shared

    base_url = settings.ml_api_base_url
    timeout = settings.http_timeout_seconds
    logger.info("Using ML service at %s", base_url)

    def factory(visitor_id: str) -> Collaborators:
        return Collaborators(
            interaction_log=HttpInteractionLogAdapter(base_url, visitor_id, timeout=timeout),
            recommender=HttpRecommenderAdapter(base_url, visitor_id, timeout=timeout),
            click_log=HttpClickLogAdapter(base_url, visitor_id, timeout=timeout),
        )

    return factory
