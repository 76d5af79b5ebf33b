"""
Application composition.

Wires configuration, database and web3 gateways into a SaleController.
"""

from eth_account import Account
from loguru import logger
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from tokensale.config.settings import Settings
from tokensale.database import create_engine, create_session_factory
from tokensale.services.blockchain.transaction_sender import TransactionSender
from tokensale.services.exchange.exchanger import Exchanger
from tokensale.services.exchange.route_selector import RouteSelector
from tokensale.services.exchange.web3_swap import Web3SwapExecutor
from tokensale.services.exchange.web3_venues import Web3VenueProvider
from tokensale.services.funds.custody import Web3TokenCustody
from tokensale.services.sale.authorization import allowlist_authorizer
from tokensale.services.sale.controller import SaleController
from tokensale.utils.security import mask_address


def build_web3(rpc_url: str) -> Web3:
    """Create a Web3 client for the RPC endpoint."""
    w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
    w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
    return w3


async def build_sale_controller(settings: Settings) -> SaleController:
    """
    Build a ready-to-use sale controller.

    Seeds the sale and referral settings rows from configuration when
    they do not exist yet.

    Args:
        settings: Application settings

    Returns:
        SaleController
    """
    engine = create_engine(settings.database_url, echo=settings.database_echo)
    session_factory = create_session_factory(engine)

    w3 = build_web3(settings.rpc_url)
    account = Account.from_key(settings.operator_private_key)
    sender = TransactionSender(
        w3,
        account,
        chain_id=settings.chain_id,
        receipt_timeout=settings.tx_receipt_timeout,
    )

    route_selector = RouteSelector(
        Web3VenueProvider(sender, settings.factory_address),
        fee_tiers=settings.get_fee_tiers(),
    )
    exchanger = Exchanger(
        route_selector,
        Web3SwapExecutor(sender, settings.swap_router_address),
        settings.stable_token_address,
    )

    controller = SaleController(
        session_factory=session_factory,
        exchanger=exchanger,
        custody=Web3TokenCustody(sender),
        stable_token=settings.stable_token_address,
        treasury=settings.treasury_address,
        authorizer=allowlist_authorizer(settings.get_admin_addresses()),
        default_hard_cap=settings.sale_hard_cap,
        default_level1_rate=settings.level1_referral_rate,
        default_level2_rate=settings.level2_referral_rate,
        default_claims_enabled=settings.referral_claims_enabled,
    )
    await controller.initialize()

    logger.info(
        "Sale controller ready",
        extra={
            "chain_id": settings.chain_id,
            "operator": mask_address(account.address),
            "treasury": mask_address(settings.treasury_address),
            "fee_tiers": list(settings.get_fee_tiers()),
        },
    )
    return controller
