"""Static catalog of photobooth backgrounds."""

from pathlib import PurePath
from typing import Any

from marathon_photobooth.core.errors import InvalidBackgroundError
from marathon_photobooth.models.background import Background, Pose, TimePeriod

SEPIA = "sepia vintage filter with muted browns and yellows"
SOFT_HISTORICAL_LIGHT = "soft, diffused historical lighting"

BACKGROUNDS: dict[str, Background] = {
    bg.id: bg
    for bg in [
        Background(
            id="amsterdam750-flowermarket",
            name="Historic Flower Market",
            file="Amsterdam750-FlowerMarket.png",
            description="Historic Amsterdam canal with traditional Dutch houses, flower market scene",
            lighting="overcast Northern European light, soft shadows",
            color_treatment=(
                "oil painting aesthetic with rich brushstrokes, "
                "classical Dutch masters style, painterly texture"
            ),
            composition="canal on left, street path on right side",
            time_period=TimePeriod.PAST,
            era="early 1900s",
            artistic_style="oil-painting",
        ),
        Background(
            id="amsterdam750-goldenage",
            name="Golden Age Harbor",
            file="Amsterdam750-GoldenAgeV2.png",
            description="Sepia-toned Amsterdam harbor from the Golden Age",
            lighting=SOFT_HISTORICAL_LIGHT,
            color_treatment=SEPIA,
            composition="harbor on left, cobblestone street on right",
            time_period=TimePeriod.PAST,
            era="1600s-1700s",
        ),
        Background(
            id="amsterdam750-rijksmuseum",
            name="Rijksmuseum Celebration",
            file="Amsterdam750-RijksmuseumV6.png",
            description=(
                "Sepia-toned vintage marathon at the Rijksmuseum, "
                "no other runners or people in the background"
            ),
            lighting=SOFT_HISTORICAL_LIGHT,
            color_treatment=SEPIA,
            composition="museum entrance centered, crowds on sides",
            time_period=TimePeriod.PAST,
            era="1980",
        ),
        Background(
            id="future-solarbridge",
            name="Solar Bridge Run",
            file="FutureofRunning-SolarBridge3.png",
            description="Futuristic bridge with solar panels and drone spectators",
            lighting="bright futuristic lighting with LED accents",
            color_treatment="full color with blue-cyan tech tones",
            composition="bridge pathway centered",
            time_period=TimePeriod.FUTURE,
            era="2050s",
        ),
        Background(
            id="future-biodomes",
            name="Canal Biodomes",
            file="FutureofRunningBiodomes2.png",
            description="Future Amsterdam with biodome structures along canals",
            lighting="soft bioluminescent and natural light mix",
            color_treatment="full color with green-blue environmental tones",
            composition="canal path on right, biodomes on left",
            time_period=TimePeriod.FUTURE,
            era="2050s",
        ),
        Background(
            id="future-smartfinish",
            name="Smart Stadium Finish",
            file="FututeofRunning-SmartFinish6.png",
            description="High-tech stadium with robotic assistants and holographic finish line",
            lighting="bright stadium lighting with holographic effects",
            color_treatment="full color vibrant with neon accents",
            composition="finish line centered, stadium surroundings",
            time_period=TimePeriod.FUTURE,
            era="2050s",
            pose=Pose.WALKING,
        ),
        Background(
            id="tcs50-firstmarathon",
            name="The First Marathon",
            file="TCS50-FirstMarathon.png",
            description="1970s Olympic Stadium finish line",
            lighting="vintage 70s photography lighting",
            color_treatment="slightly desaturated 70s color palette",
            composition="track finish line centered",
            time_period=TimePeriod.PAST,
            era="1970s",
            pose=Pose.WALKING,
        ),
        Background(
            id="tcs50-iamsterdam",
            name="I Amsterdam",
            file="TCS50-IamsterdamV4.png",
            description="Modern marathon at the iconic I Amsterdam sign",
            lighting="bright modern daylight",
            color_treatment="full color contemporary photography",
            composition="sign and runners centered",
        ),
        Background(
            id="tcs50-vondelpark",
            name="Vondelpark",
            file="TCS50-Vondelpark.png",
            description="Green park setting with trees and pathways",
            lighting="dappled sunlight through trees, natural green tones",
            color_treatment="full color natural tones",
            composition="centered park path",
        ),
    ]
}

# (category key, title, id prefix)
CATEGORIES = [
    ("amsterdam750", "Amsterdam 750", "amsterdam750-"),
    ("futureofrunning", "Future of Running", "future-"),
    ("tcs50", "TCS50", "tcs50-"),
]

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
}


class BackgroundCatalog:
    """Lookup and grouping over a set of backgrounds."""

    def __init__(self, backgrounds: dict[str, Background] | None = None) -> None:
        self.backgrounds = backgrounds if backgrounds is not None else BACKGROUNDS

    def __contains__(self, background_id: object) -> bool:
        return background_id in self.backgrounds

    def get(self, background_id: str) -> Background:
        """Resolve a background id.

        Raises:
            InvalidBackgroundError: if the id is not in the catalog
        """
        background = self.backgrounds.get(background_id)
        if background is None:
            raise InvalidBackgroundError(background_id)
        return background

    def grouped(self) -> dict[str, dict[str, Any]]:
        """Backgrounds grouped into display categories by id prefix.

        Backgrounds matching no category prefix are left out.
        """
        categories: dict[str, dict[str, Any]] = {
            key: {"title": title, "backgrounds": []} for key, title, _ in CATEGORIES
        }
        for background_id, background in self.backgrounds.items():
            for key, _, prefix in CATEGORIES:
                if background_id.startswith(prefix):
                    categories[key]["backgrounds"].append(
                        {
                            "id": background_id,
                            "name": background.name,
                            "description": background.description,
                            "thumbnail": f"/backgrounds/{background.file}",
                        }
                    )
                    break
        return categories


def infer_mime(filename: str) -> str:
    """Guess an image mime type from a file name, defaulting to PNG."""
    return MIME_TYPES.get(PurePath(filename).suffix.lower(), "image/png")
