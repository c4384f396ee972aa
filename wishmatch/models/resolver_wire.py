"""
Remote resolver wire format.

Shared by the resolver HTTP service (server side) and RemoteResolverBackend
(client side). Field names on the wire are camelCase.
"""

from pydantic import BaseModel, ConfigDict, Field

from wishmatch.models.oracle import ResolutionResult


class OracleData(BaseModel):
    """Resolution result as sent over HTTP."""

    model_config = ConfigDict(populate_by_name=True)

    oracle_id: str | None = Field(default=None, alias="oracleId")
    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")
    eur_price: float | None = Field(default=None, alias="eurPrice")

    @classmethod
    def from_result(cls, result: ResolutionResult) -> "OracleData":
        return cls(
            oracle_id=result.oracle_id,
            image_urls=list(result.image_urls),
            eur_price=result.eur_price,
        )

    def to_result(self) -> ResolutionResult:
        return ResolutionResult(
            oracle_id=self.oracle_id or None,
            image_urls=tuple(self.image_urls),
            eur_price=self.eur_price,
        )


class NamedOracleData(OracleData):
    """One entry of a batch response, keyed by the requested name."""

    name: str


class ResolveBatchRequest(BaseModel):
    """Batch resolution request. Null and blank names are ignored."""

    names: list[str | None] = Field(default_factory=list)


class ResolveBatchResponse(BaseModel):
    """
    Batch resolution response.

    This service only includes resolved names. Clients also accept entries
    with a null oracleId and treat them as misses.
    """

    results: list[NamedOracleData] = Field(default_factory=list)
