import pytest

SALOON_RESPONSE = (
    "You enter the dusty saloon.\n\n"
    "LOCATION: Silver Gulch Saloon\n"
    'SUGGESTED_ACTIONS: [{"text": "Approach the bar", "type": "basic"}]'
)


@pytest.fixture
def saloon_response() -> str:
    return SALOON_RESPONSE


@pytest.fixture
def character_payload() -> dict:
    return {
        "name": "Black Bart",
        "attributes": {
            "speed": 12,
            "gunAccuracy": 14,
            "throwingAccuracy": 9,
            "strength": 11,
            "baseStrength": 11,
            "bravery": 15,
            "experience": 6,
        },
    }


@pytest.fixture
def decision_payload() -> dict:
    return {
        "prompt": "The sheriff blocks the door. What do you do?",
        "options": [
            {"text": "Talk him down", "impact": "Avoids bloodshed", "tags": ["diplomacy"]},
            {"text": "Draw your pistol", "impact": "Starts a gunfight", "tags": ["combat"]},
        ],
        "importance": "significant",
        "context": "Sheriff Cole suspects you of the bank job.",
        "characters": ["Sheriff Cole"],
    }
