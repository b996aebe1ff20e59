"""DI container. main.py builds one per app and keeps it on app.state; deps.py resolves from it."""
from dependency_injector import containers, providers

from market_watch.cache import PriceCache, create_cache_backend
from market_watch.config import Settings, get_settings
from market_watch.db import AssetClass, SessionFactory
from market_watch.providers import (AssetFetcherABC, BatchedEquityFetcher,
                                    CoinGeckoFetcher, FinnhubQuoteSource,
                                    QuoteSourceABC, YFinanceQuoteSource)
from market_watch.services import (AlertEvaluationEngine, AlertRepository,
                                   AlertService, BroadcastHub,
                                   IngestionScheduler, MarketService)
from market_watch.services.notifications import (EmailChannel, InAppChannel,
                                                 MailTransportABC,
                                                 NotificationDispatcher,
                                                 NotificationStore,
                                                 SmtpTransport, UserDirectory)


def build_quote_source(settings: Settings) -> QuoteSourceABC:
    """Finnhub when selected and keyed; yfinance otherwise."""
    if settings.equity_source == "finnhub" and settings.finnhub_api_key:
        return FinnhubQuoteSource(
            settings.finnhub_api_key,
            base_url=settings.finnhub_api_url,
            timeout=settings.equity_request_timeout_seconds,
        )
    return YFinanceQuoteSource(timeout=settings.equity_request_timeout_seconds)


def build_mail_transport(settings: Settings) -> MailTransportABC | None:
    if not settings.email_enabled:
        return None
    return SmtpTransport(
        settings.smtp_host,
        settings.smtp_port,
        settings.smtp_user,
        settings.smtp_password,
        sender=settings.email_from,
    )


def fetcher_map(*fetchers: AssetFetcherABC) -> dict[AssetClass, AssetFetcherABC]:
    return {f.asset_class: f for f in fetchers}


class Container(containers.DeclarativeContainer):
    settings = providers.Singleton(get_settings)

    session_factory = providers.Singleton(
        SessionFactory.from_url,
        settings.provided.database_url,
        echo=settings.provided.sql_echo,
    )

    # Ingestion
    cache_backend = providers.Singleton(create_cache_backend, settings.provided.redis_url)
    price_cache = providers.Singleton(
        PriceCache, cache_backend, ttl_seconds=settings.provided.cache_ttl_seconds
    )
    hub = providers.Singleton(BroadcastHub, max_items=settings.provided.broadcast_max_items)

    crypto_fetcher = providers.Singleton(
        CoinGeckoFetcher,
        api_key=settings.provided.coingecko_api_key,
        use_pro_api=settings.provided.coingecko_use_pro,
        page_size=settings.provided.coingecko_page_size,
        timeout=settings.provided.coingecko_timeout_seconds,
    )
    quote_source = providers.Singleton(build_quote_source, settings)
    equity_fetcher = providers.Singleton(
        BatchedEquityFetcher,
        quote_source,
        batch_size=settings.provided.equity_batch_size,
        batch_delay=settings.provided.equity_batch_delay_seconds,
        min_resolved_ratio=settings.provided.equity_min_resolved_ratio,
    )
    fetchers = providers.List(crypto_fetcher, equity_fetcher)

    scheduler = providers.Singleton(
        IngestionScheduler,
        fetchers,
        price_cache,
        hub,
        interval=settings.provided.ingestion_interval_seconds,
    )
    market_service = providers.Singleton(
        MarketService,
        price_cache,
        providers.Callable(fetcher_map, crypto_fetcher, equity_fetcher),
        update_interval_seconds=settings.provided.ingestion_interval_seconds,
    )

    # Alerts
    alert_repository = providers.Singleton(AlertRepository, session_factory)
    alert_service = providers.Singleton(AlertService, alert_repository)

    # Notifications
    notification_store = providers.Singleton(NotificationStore, session_factory)
    user_directory = providers.Singleton(UserDirectory, settings.provided.user_emails)
    mail_transport = providers.Singleton(build_mail_transport, settings)
    in_app_channel = providers.Singleton(InAppChannel, notification_store, hub)
    email_channel = providers.Singleton(
        EmailChannel,
        mail_transport,
        user_directory,
        dashboard_url=settings.provided.dashboard_url,
    )
    dispatcher = providers.Singleton(
        NotificationDispatcher,
        providers.List(in_app_channel, email_channel),
        queue_size=settings.provided.notification_queue_size,
        workers=settings.provided.notification_workers,
    )

    alert_engine = providers.Singleton(
        AlertEvaluationEngine,
        alert_repository,
        market_service,
        dispatcher,
        interval=settings.provided.evaluation_interval_seconds,
    )
