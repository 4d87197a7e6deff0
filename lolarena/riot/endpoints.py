# riot/endpoints.py – URL builders for the three Riot APIs the lookup needs

import logging
from urllib.parse import quote

log = logging.getLogger(__name__)

# Platform → regional routing for /riot/account/v1
REGION_GROUPS = {
    "euw1": "europe", "eun1": "europe",
    "na1": "americas", "br1": "americas", "la1": "americas", "la2": "americas", "oc1": "americas",
    "kr": "asia", "jp1": "asia", "ph2": "asia", "sg2": "asia", "th2": "asia", "tw2": "asia", "vn2": "asia",
}
PLATFORMS = frozenset(REGION_GROUPS)


def normalize_region(region: str) -> str:
    return region.strip().lower()


def regional_group(region: str) -> str:
    """Routing value for account-v1. Unknown platforms fall back to europe."""
    region = normalize_region(region)
    group = REGION_GROUPS.get(region)
    if group is None:
        log.warning(f"Unknown region {region}, defaulting to europe")
        return "europe"
    return group


def account_by_riot_id_url(region: str, game_name: str, tag_line: str) -> str:
    """Account-V1: GET /riot/account/v1/accounts/by-riot-id/{gameName}/{tagLine}"""
    return (
        f"https://{regional_group(region)}.api.riotgames.com"
        f"/riot/account/v1/accounts/by-riot-id/{quote(game_name, safe='')}/{quote(tag_line, safe='')}"
    )


def summoner_by_puuid_url(region: str, puuid: str) -> str:
    return f"https://{normalize_region(region)}.api.riotgames.com/lol/summoner/v4/summoners/by-puuid/{puuid}"


def masteries_by_puuid_url(region: str, puuid: str) -> str:
    return (
        f"https://{normalize_region(region)}.api.riotgames.com"
        f"/lol/champion-mastery/v4/champion-masteries/by-puuid/{puuid}"
    )
