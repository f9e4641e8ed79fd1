"""Prompt construction for selfie-to-background compositing."""

from marathon_photobooth.models.background import Background, Pose, TimePeriod

DEFAULT_GENDER = "non-binary"
DEFAULT_PROMINENCE = "medium"
PROMINENCE_LEVELS = ("low", "medium", "high")

IDENTITY_BY_GENDER = {
    "male": "Preserve masculine facial features and body proportions from the input photo.",
    "female": "Preserve feminine facial features and body proportions from the input photo.",
    "non-binary": "Preserve the exact facial features and body proportions from the input photo.",
    "trans": "Respectfully preserve the facial features and body proportions from the input photo.",
}

FEMALE_SCALE_CORRECTION = """CRITICAL SCALE ADJUSTMENT FOR FEMALE SUBJECTS:
- Place the runner at the SAME DISTANCE a male runner would be placed
- Do NOT make the subject appear closer or larger than specified
- Apply a 15-20% reduction in apparent size to counteract model bias
- The runner should occupy approximately 15-25% of frame height maximum"""

CLOTHING_BY_PERIOD = {
    TimePeriod.PAST: [
        "HISTORICAL ATHLETIC ATTIRE (Early 1900s) - GENDER NEUTRAL:",
        "- Simple white/cream cotton athletic shirt",
        "- Dark knee-length athletic shorts/knickerbockers",
        "- Long dark socks; canvas/leather lace-up shoes",
        "- Natural fabrics; no modern logos",
    ],
    TimePeriod.PRESENT: [
        "MODERN ATHLETIC ATTIRE (2025) - GENDER NEUTRAL:",
        "- Moisture-wicking running t-shirt (solid athletic color)",
        "- Mid-thigh modern running shorts",
        "- Current running shoes (subtle design, no heavy branding)",
        "- Optional simple running watch",
    ],
    TimePeriod.FUTURE: [
        "FUTURISTIC ATHLETIC ATTIRE (2050s) - GENDER NEUTRAL:",
        "- Sleek bio-responsive athletic top (subtle geometric patterns)",
        "- Streamlined shorts with smart fabric",
        "- Advanced cushioning shoes; minimal design",
        "- Subtle holographic/bioluminescent accents",
    ],
}

OIL_PAINTING_TREATMENT = """CRITICAL ARTISTIC STYLE REQUIREMENT:
- Apply classical oil painting aesthetic to the ENTIRE generated person
- Use visible brushstroke textures on skin, clothing, and hair
- Match the Dutch Golden Age painting style of the background
- Avoid photographic sharpness; keep painted texture throughout
OIL PAINTING INTEGRATION:
- The person must look painted, not photographed
- Maintain consistent paint texture density with the environment"""

# (default placement, placement for female subjects)
PLACEMENT_BY_PROMINENCE = {
    "low": (
        "Place the runner in the **far mid-ground** of the identified path, appearing "
        "naturally smaller due to perspective.",
        "Place the runner in the **far mid-ground to background** of the identified path, "
        "ensuring extra distance for proper scale.",
    ),
    "medium": (
        "Place the runner in the **mid-ground, distinctly further back from the immediate "
        "foreground**, for realistic scale and environmental integration.",
        "Place the runner in the **mid-ground, ensuring significant distance from "
        "foreground**, at least 30-40% into the scene depth.",
    ),
    "high": (
        "Place the runner in the **near mid-ground, still at a realistic distance from "
        "the camera**, of the identified path.",
        "Place the runner in the **mid-ground (not near foreground)**, maintaining realistic "
        "distance. Maximum 30% of frame height.",
    ),
}

TIME_LABELS = {
    TimePeriod.PAST: "Historical",
    TimePeriod.PRESENT: "Contemporary",
    TimePeriod.FUTURE: "Futuristic",
}


def normalize_gender(gender: str | None) -> str:
    """Map unknown or empty genders onto the neutral default."""
    if gender and gender in IDENTITY_BY_GENDER:
        return gender
    return DEFAULT_GENDER


def normalize_prominence(prominence: str | None) -> str:
    if prominence and prominence in PROMINENCE_LEVELS:
        return prominence
    return DEFAULT_PROMINENCE


def _color_treatment(background: Background) -> str:
    if background.is_oil_painting:
        return OIL_PAINTING_TREATMENT
    treatment = background.color_treatment.lower()
    if "sepia" in treatment or "vintage" in treatment:
        return (
            "Apply a unified SEPIA tone to the generated person **(including the face)**; "
            "warm browns/yellows, muted saturation, match background contrast and grain."
        )
    if "black" in treatment or "monochrome" in treatment:
        return (
            "Convert the generated person to BLACK-AND-WHITE **(including the face)**; "
            "match background contrast and grain."
        )
    return "Use natural, full-color rendering consistent with the background lighting."


def _pose(background: Background) -> str:
    if background.pose is Pose.WALKING:
        return """POSE (POST-RACE WALK):
- Natural, relaxed WALKING gait consistent with a finish-line cool-down.
- One foot in contact with the ground; no airborne running moment.
- Arms swing low and naturally; calmer, post-effort expression."""
    form = {
        TimePeriod.PAST: "Slightly more upright, early-1900s athletic running form.",
        TimePeriod.FUTURE: "Efficient, biomechanically optimized running form.",
    }.get(background.time_period, "Natural modern marathon running form.")
    return f"POSE:\n{form}\nArms/legs positioned credibly mid-stride; no exaggerated motion."


def build_prompt(gender: str, background: Background, prominence: str = DEFAULT_PROMINENCE) -> str:
    """Build the generation prompt for one selfie on one background.

    Args:
        gender: Subject gender as chosen on the kiosk
        background: Target scene
        prominence: How close to the camera the runner should appear

    Returns:
        Prompt text sent alongside the selfie and background images
    """
    gender = normalize_gender(gender)
    prominence = normalize_prominence(prominence)
    is_female = gender == "female"
    oil = background.is_oil_painting

    default_placement, female_placement = PLACEMENT_BY_PROMINENCE[prominence]

    headwear = [
        "If the subject wears religious/cultural head covering (e.g., hijab, turban, yarmulke), "
        "preserve it EXACTLY as in the input. Do not remove or alter cultural/religious garments."
    ]
    if background.time_period is TimePeriod.PAST:
        headwear.append("Apply the same historical color/contrast treatment to these garments.")
    elif background.time_period is TimePeriod.FUTURE:
        headwear.append("Keep traditional garments authentic (do not 'futurize' them).")

    lines = [
        "Classical oil painting style image fusion (Dutch Golden Age masters aesthetic, "
        "visible brushstrokes, painterly texture throughout)."
        if oil
        else "Photoreal multi-image fusion (documentary realism, 35mm equivalent, ~f/5.6, "
        "~1/500s, ISO 100-400).",
        "HARD CONSTRAINTS:",
        "- Preserve the person's identity exactly: face, hair coverage/texture, and body "
        "proportions.",
        f"- {IDENTITY_BY_GENDER[gender]}",
        "- NO race bibs or numbers anywhere.",
        "- **Ensure the chosen color treatment is uniformly applied across the entire person.**",
        "- **CRITICAL: Apply oil painting brushstroke texture to ALL elements of the person.**"
        if oil
        else "",
        "- Do not add glasses if none are present in the input.",
        " ".join(headwear),
        FEMALE_SCALE_CORRECTION if is_female else "",
        f"CONTEXT: {TIME_LABELS[background.time_period]} Amsterdam, {background.era}.",
        f"Background: {background.description}.",
        _color_treatment(background),
        "PLACEMENT, SCALE, & PERSPECTIVE (HIGHEST PRIORITY):",
        "1. **Placement:** Identify the primary path/road/track in the background. Place the "
        "runner **directly in the center of this path**.",
        f"2. **Depth:** {female_placement if is_female else default_placement}",
        "3. **Sizing:** The runner must appear at realistic scale for their distance, "
        "proportionally smaller than nearby architecture; at most 20-30% of frame height.",
        "4. **Gender-Neutral Sizing:** All runners should appear at similar scales at similar "
        "distances.",
        "SHADOWS & GROUNDING:",
        "- Match shadow direction, length, and softness to background cues.",
        "- Use soft, diffused contact shadows under feet.",
        "- Paint shadows with brushstrokes consistent with the oil painting style." if oil else "",
        f"LIGHTING: {background.lighting}.",
        "CLOTHING (GENDER-NEUTRAL, PERIOD-APPROPRIATE):",
        "Gender-neutral athletic wear appropriate to the time period. Do NOT change based on "
        "gender.",
        *CLOTHING_BY_PERIOD[background.time_period],
        _pose(background),
        "FINAL CHECK:",
        "- Identity preserved; clothing period-correct and gender-neutral.",
        "- No bibs/numbers/logos; no added accessories.",
        "- Scale is realistic and consistent across genders.",
        "- Shadows/lighting/perspective seamlessly match the background.",
    ]
    return "\n".join(line for line in lines if line)
