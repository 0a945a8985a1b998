"""Request URL conventions of the World Bank data and climate APIs."""

from .climate import Gcm, Scenario, Variable


class WorldBankUrls:
    """Builds request URLs deterministically from query parameters."""

    def __init__(self, api_base_url: str, climate_base_url: str):
        self.api_base_url = api_base_url.rstrip("/")
        self.climate_base_url = climate_base_url.rstrip("/")

    def indicator(
        self,
        indicator: str,
        start_year: int,
        end_year: int,
        country: str,
        page: int,
        per_page: int,
    ) -> str:
        return (
            f"{self.api_base_url}/countries/{country}/indicators/{indicator}"
            f"?date={start_year}:{end_year}&format=json"
            f"&page={page}&per_page={per_page}"
        )

    def climate(
        self,
        variable: Variable,
        start_year: int,
        end_year: int,
        country: str,
        gcm: Gcm = None,
        scenario: Scenario = None,
    ) -> str:
        # Optional segments always come model first, then scenario.
        segments = [self.climate_base_url]
        if gcm is not None:
            segments.append(gcm.code)
        if scenario is not None:
            segments.append(scenario.code)
        segments.append(f"{variable.code}/{start_year}/{end_year}/{country}.json")
        return "/".join(segments)

    def catalog(self, per_page: int) -> str:
        return f"{self.api_base_url}/datacatalog?format=json&per_page={per_page}"
