from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from core.cache import MatchCacheService
from core.config_loader import AppConfig
from core.matcher.selector import CandidateSelector
from core.matching_service import MatchingEngine
from core.provider import ProviderClient, RemoteScorer
from core.scorer import LocalScorer, ScoringService, MatchStore, QualityAssessor
from database.database import build_engine, build_session_factory
from pipeline.batch import BatchMatcher


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Everything is constructed once at startup and passed by reference;
    DB access is obtained via match_uow() inside each operation.
    """
    config: AppConfig
    db_engine: Optional[Engine]
    session_factory: sessionmaker
    cache: MatchCacheService
    scoring_service: ScoringService
    match_store: MatchStore
    quality_assessor: QualityAssessor
    batch_matcher: BatchMatcher
    engine: MatchingEngine
    provider_client: Optional[ProviderClient] = None

    @classmethod
    def build(
        cls,
        config: AppConfig,
        session_factory: Optional[sessionmaker] = None,
        cache: Optional[MatchCacheService] = None
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            session_factory: Use this instead of connecting to config.database.url
            cache: Use this instead of connecting to config.cache.redis_url

        Returns:
            Fully wired AppContext instance
        """
        if session_factory is None:
            db_engine = build_engine(
                config.database.url,
                pool_size=config.database.pool_size,
                max_overflow=config.database.max_overflow,
                echo=config.database.echo
            )
            session_factory = build_session_factory(db_engine)
        else:
            db_engine = session_factory.kw.get('bind')

        matching = config.matching

        if cache is None:
            cache = MatchCacheService(
                redis_url=config.cache.redis_url,
                password=config.cache.password,
                ttl_seconds=matching.cache_ttl_seconds,
                socket_timeout_seconds=config.cache.socket_timeout_seconds,
                reconnect_interval_seconds=config.cache.reconnect_interval_seconds,
                enabled=config.cache.enabled
            )

        provider_client = cls._build_provider_client(config)

        remote_scorer = None
        if provider_client is not None:
            remote_scorer = RemoteScorer(provider_client, path=config.provider.calculate_path)

        scoring_service = ScoringService(
            local=LocalScorer(matching.scorer.component_weights),
            remote=remote_scorer
        )
        selector = CandidateSelector(max_candidates=matching.selector.max_candidates)
        match_store = MatchStore(session_factory)
        quality_assessor = QualityAssessor(
            client=provider_client,
            path=config.provider.quality_path,
            fallback_confidence=matching.quality.fallback_confidence
        )
        batch_matcher = BatchMatcher(
            session_factory=session_factory,
            selector=selector,
            scoring=scoring_service,
            store=match_store,
            cache=cache,
            max_workers=matching.batch.max_workers,
            default_company_limit=matching.batch.default_company_limit,
            default_student_limit=matching.batch.default_student_limit
        )
        engine = MatchingEngine(
            session_factory=session_factory,
            selector=selector,
            scoring=scoring_service,
            store=match_store,
            cache=cache,
            quality=quality_assessor,
            batch=batch_matcher,
            provider_client=provider_client,
            cache_ttl_seconds=matching.cache_ttl_seconds,
            default_limit=matching.scorer.default_limit,
            default_min_score=matching.scorer.default_min_score,
            student_recommendations_path=config.provider.student_recommendations_path,
            company_recommendations_path=config.provider.company_recommendations_path
        )

        return cls(
            config=config,
            db_engine=db_engine,
            session_factory=session_factory,
            cache=cache,
            scoring_service=scoring_service,
            match_store=match_store,
            quality_assessor=quality_assessor,
            batch_matcher=batch_matcher,
            engine=engine,
            provider_client=provider_client
        )

    @staticmethod
    def _build_provider_client(config: AppConfig) -> Optional[ProviderClient]:
        """Build the provider client; None when no provider URL is configured."""
        provider_config = config.provider
        if not provider_config.base_url:
            return None
        return ProviderClient(
            base_url=provider_config.base_url,
            api_key=provider_config.api_key,
            request_timeout_seconds=provider_config.request_timeout_seconds
        )

    def close(self) -> None:
        if self.provider_client is not None:
            self.provider_client.close()
        if self.db_engine is not None:
            self.db_engine.dispose()
