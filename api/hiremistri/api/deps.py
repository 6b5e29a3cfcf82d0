from __future__ import annotations

from typing import Any

from fastapi import Depends

from hiremistri.core.config import Settings, get_settings
from hiremistri.services.dispatcher import NotificationDispatcher
from hiremistri.services.identity import IdentityResolver, SupabaseIdentityProvider
from hiremistri.services.jobs import JobService
from hiremistri.services.live import ConnectionHub, get_connection_hub
from hiremistri.services.messaging import MessagingService
from hiremistri.services.notifications import NotificationService, get_dispatcher
from hiremistri.services.proposals import ProposalService
from hiremistri.services.recommendations import RecommendationService
from hiremistri.services.repository import get_repository
from hiremistri.services.saved_jobs import SavedJobService
from hiremistri.services.users import UserService


def build_identity_resolver(repository: Any, settings: Settings) -> IdentityResolver:
    provider = None
    if settings.supabase_url and settings.supabase_service_role_key:
        provider = SupabaseIdentityProvider(
            supabase_url=settings.supabase_url,
            service_role_key=settings.supabase_service_role_key,
            timeout_seconds=settings.identity_timeout_seconds,
        )
    return IdentityResolver(repository, provider)


def build_job_service(repository: Any, settings: Settings, dispatcher: NotificationDispatcher) -> JobService:
    resolver = build_identity_resolver(repository, settings)
    return JobService(
        repository,
        NotificationService(repository, dispatcher, resolver),
        resolver,
        sweep_batch_size=settings.expiration_sweep_batch_size,
    )


def get_identity_resolver(
    repository=Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> IdentityResolver:
    return build_identity_resolver(repository, settings)


def get_notification_service(
    repository=Depends(get_repository),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> NotificationService:
    return NotificationService(repository, dispatcher, resolver)


def get_job_service(
    repository=Depends(get_repository),
    notifications: NotificationService = Depends(get_notification_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    settings: Settings = Depends(get_settings),
) -> JobService:
    return JobService(repository, notifications, resolver, sweep_batch_size=settings.expiration_sweep_batch_size)


def get_proposal_service(
    repository=Depends(get_repository),
    notifications: NotificationService = Depends(get_notification_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> ProposalService:
    return ProposalService(repository, notifications, resolver)


def get_messaging_service(
    repository=Depends(get_repository),
    notifications: NotificationService = Depends(get_notification_service),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    hub: ConnectionHub = Depends(get_connection_hub),
) -> MessagingService:
    return MessagingService(repository, notifications, resolver, hub)


def get_recommendation_service(
    repository=Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> RecommendationService:
    return RecommendationService(repository, limit=settings.recommendation_limit)


def get_user_service(repository=Depends(get_repository)) -> UserService:
    return UserService(repository)


def get_saved_job_service(repository=Depends(get_repository)) -> SavedJobService:
    return SavedJobService(repository)
