from __future__ import annotations

from fastapi import APIRouter, Depends

from pool_analytics.api.deps import get_query_dispatcher, get_request_context
from pool_analytics.api.errors import http_error_for
from pool_analytics.api.schemas.prices import TokenPriceResponse
from pool_analytics.application.context import RequestContext
from pool_analytics.application.dispatcher import QueryDispatcher
from pool_analytics.application.dto.token_price import GetTokenPriceQuery

router = APIRouter()


@router.get("/v1/prices/{token_address}", response_model=TokenPriceResponse)
async def get_token_price(
    token_address: str,
    quote_token_address: str,
    context: RequestContext = Depends(get_request_context),
    dispatcher: QueryDispatcher = Depends(get_query_dispatcher),
):
    result = await dispatcher.dispatch(
        GetTokenPriceQuery(
            token_address=token_address,
            quote_token_address=quote_token_address,
        ),
        context,
    )
    if result.is_failure:
        raise http_error_for(result.error, context)

    output = result.value
    return TokenPriceResponse(
        token_address=output.token_address,
        quote_token_address=output.quote_token_address,
        quote_token_symbol=output.quote_token_symbol,
        price=format(output.price, "f"),
        price_usd=format(output.price_usd, "f"),
        pool_address=output.pool_address,
        liquidity=format(output.liquidity, "f"),
        timestamp=output.timestamp.isoformat(),
    )
