"""
config/template.py
──────────────────────────────────────────────────────────────────────────────
The canonical SWAT Tier Level Assessment questionnaire.

This module is the ONLY place category or question content may change.
Every entry is (key, text) or (key, text, answer_type):

  key   — stable identity of the question.  Never reuse or rename a key;
          retire it by removing the entry.
  text  — current wording.  Correcting the wording under the same key
          patches the persisted row in place, keeping its responses.

Categories are listed in display order; their order index is their
1-based position in CATEGORIES.

Bump TEMPLATE_VERSION on every edit.
"""
from __future__ import annotations

from functools import lru_cache

from tiersync.domain.models import (
    AnswerType,
    CanonicalCategory,
    CanonicalQuestion,
    Template,
)

TEMPLATE_VERSION = "2024.3"

# Prefix for descriptions of categories created by reconciliation.
CATEGORY_DESCRIPTION_PREFIX = "Official SWAT Tier Level Assessment category: "


CATEGORIES: tuple[tuple[str, tuple[tuple, ...]], ...] = (
    ("Tier 1-4 Metrics (Personnel & Leadership)", (
        ("personnel.members-34-plus", "Do you have 34 or more total members?"),
        ("personnel.members-25-33", "Do you have 25-33 members?"),
        ("personnel.members-16-24", "Do you have 16-24 members?"),
        ("personnel.members-15-or-fewer", "Do you have 15 or fewer members?"),
        ("personnel.team-commander", "Do you have a designated team commander?"),
        ("personnel.team-leaders-4-plus", "Do you have 4 or more team leaders?"),
        ("personnel.team-leaders-2-or-fewer", "Do you have 2 or fewer team leaders?"),
        ("personnel.snipers-8-plus", "Do you have 8 or more snipers?"),
        ("personnel.snipers-6-7", "Do you have 6-7 snipers?"),
        ("personnel.entry-18-plus", "Do you have 18 or more dedicated entry operators?"),
        ("personnel.entry-12-17", "Do you have 12-17 dedicated entry operators?"),
        ("personnel.entry-11-or-fewer", "Do you have 11 or fewer dedicated entry operators?"),
        ("personnel.tems-3-plus", "Do you have 3 or more TEMS personnel?"),
        ("personnel.tems-2", "Do you have 2 TEMS personnel?"),
        ("personnel.tems-1", "Do you have at least 1 TEMS personnel?"),
    )),
    ("Mission Profiles", (
        ("mission.terrorist-response", "Do you train and prepare for terrorist response operations?"),
        ("mission.critical-infrastructure", "Do you train and conduct critical infrastructure protection?"),
        ("mission.dignitary-protection", "Do you train and conduct dignitary protection operations?"),
        ("mission.sniper-operations", "Do you train and prepare for sniper operations?"),
        ("mission.man-tracking", "Do you train or conduct man-tracking operations (rural/woodland)?"),
    )),
    ("Individual Operator Equipment", (
        ("operator.body-armor", "Do all your members have at least Level IIIA body armor & rifle plates?"),
        ("operator.ballistic-helmet", "Do all your members have at least Level IIIA ballistic helmets?"),
        ("operator.helmet-white-light", "Do all operators have helmet-mounted white light systems?"),
        ("operator.helmet-ir-light", "Do all operators have helmet-mounted IR light source?"),
        ("operator.gas-mask", "Do all operators have gas masks?"),
        ("operator.voice-amplifier", "Do all operators have voice amplifiers for gas masks?"),
        ("operator.integrated-comms", "Do all members have integrated communications (team-wide)?"),
        ("operator.retention-holster", "Do all operators have Level 2+ retention holsters?"),
        ("operator.ear-protection", "Do all members have noise-canceling ear protection?"),
        ("operator.night-vision", "Do all operators have Night Vision (BNVD, Monocular, PANO)?"),
    )),
    ("Sniper Equipment & Operations", (
        ("sniper.training-records", "Do you maintain training records, lesson plans, and research selection processes for snipers?"),
        ("sniper.certifications", "Do you maintain certifications, qualifications, and records of weapons modifications & ammo inventories?"),
        ("sniper.hydration", "Do snipers have a hydration system?"),
        ("sniper.spotting-scope", "Do snipers have a spotting scope?"),
        ("sniper.long-range-camera", "Do snipers have a long-range camera system?"),
        ("sniper.binoculars", "Do snipers have binoculars?"),
        ("sniper.rangefinder", "Do snipers have a rangefinder?"),
        ("sniper.white-light", "Do snipers have a white light source?"),
        ("sniper.hands-free-light", "Do snipers have a hands-free white light or low-visibility red/green/blue light?"),
        ("sniper.night-vision", "Does each sniper have night vision (BNVD, Monocular, PANO)?"),
        ("sniper.precision-rifle", "Does each sniper have a precision rifle?"),
        ("sniper.rifle-logbook", "Do snipers maintain a logbook for maintenance & tracking rifle performance?"),
        ("sniper.magnified-optics", "Do snipers use magnified optics?"),
        ("sniper.clip-on-night-vision", "Do snipers have clip-on night vision for magnified optics?"),
        ("sniper.ir-illuminator", "Do snipers have an IR illuminator?"),
        ("sniper.ir-laser", "Do snipers have an IR laser handheld for target identification?"),
        ("sniper.barrier-ammunition", "Are snipers equipped with ammunition capable of engagements through intermediate glass?"),
    )),
    ("Breaching Operations", (
        ("breaching.manual", "Does your team have manual breaching tools?"),
        ("breaching.hydraulic", "Does your team have hydraulic breaching tools?"),
        ("breaching.ballistic", "Does your team have ballistic breaching capability?"),
        ("breaching.thermal", "Does your team have thermal/exothermic breaching capability?"),
        ("breaching.explosive", "Does your team have explosive breaching capability?"),
        ("breaching.mechanical", "Does your team have mechanical breaching capability?"),
    )),
    ("Access & Elevated Tactics", (
        ("access.ladders", "Does your team have ladder systems?"),
        ("access.rappel", "Does your team have rappel equipment?"),
        ("access.fast-rope", "Does your team have fast-rope equipment?"),
        ("access.elevated-rescue", "Does your team have elevated rescue equipment?"),
        ("access.pole-cameras", "Does your team have pole cameras or other surveillance equipment?"),
        ("access.tactical-mirrors", "Does your team have tactical mirrors?"),
    )),
    ("Less-Lethal Capabilities", (
        ("less-lethal.impact-munitions", "Does your team have extended range impact munitions?"),
        ("less-lethal.pepper-ball", "Does your team have pepper ball systems?"),
        ("less-lethal.ecw", "Does your team have electronic control weapons (ECW/Tasers)?"),
    )),
    ("Noise Flash Diversionary Devices (NFDDs)", (
        ("nfdd.hand-deployed", "Does your team have hand-deployed distraction devices?"),
        ("nfdd.pole-deployed", "Does your team have pole-deployed distraction devices?"),
        ("nfdd.multi-port", "Does your team have multiple port capability for NFDDs?"),
        ("nfdd.time-delay", "Does your team have time-delay capability for NFDDs?"),
    )),
    ("Chemical Munitions", (
        ("chemical.projectors", "Does your team have chemical munitions projectors?"),
        ("chemical.hand-cs", "Does your team have hand-deployed CS?"),
        ("chemical.hand-oc", "Does your team have hand-deployed OC?"),
        ("chemical.hand-smoke", "Does your team have hand-deployed smoke?"),
        ("chemical.37mm", "Does your team have a 37mm deployment system?"),
        ("chemical.40mm", "Does your team have a 40mm deployment system?"),
        ("chemical.multi-launcher", "Does your team have multi-launcher deployment systems?"),
        ("chemical.pole-deployed", "Does your team have pole-deployed chemical munitions?"),
        ("chemical.time-delayed", "Does your team have time-delayed chemical devices?"),
        ("chemical.vapor", "Does your team have Vapor-OC/CS systems?"),
        ("chemical.fogger", "Does your team have fogger system/pepper fogger?"),
        ("chemical.water-cannon", "Does your team have a water cannon?"),
        ("chemical.oc-grenades", "Does your team have OC grenades?"),
        ("chemical.cs-grenades", "Does your team have CS grenades?"),
        ("chemical.smoke-grenades", "Does your team have smoke grenades?"),
        ("chemical.ir-smoke", "Does your team have IR obscuring smoke?"),
        ("chemical.pyrotechnic", "Does your team have pyrotechnic delivery systems?"),
    )),
    ("K9 Operations & Integration", (
        ("k9.patrol", "Does your team have patrol K9s?"),
        ("k9.tactical", "Does your team have tactical K9s?"),
        ("k9.explosive-detection", "Does your team have explosive detection K9s?"),
        ("k9.narcotics-detection", "Does your team have narcotics detection K9s?"),
        ("k9.tracking", "Does your team have tracking K9s?"),
        ("k9.bloodhounds", "Does your team have bloodhounds?"),
        ("k9.cadaver", "Does your team have cadaver/HRD K9s?"),
        ("k9.comfort", "Does your team have comfort K9s?"),
        ("k9.integration", "Does your team integrate K9s in tactical operations?"),
    )),
    ("Explosive Ordnance Disposal (EOD) Support", (
        ("eod.capability", "Does your team have EOD capability or trained EOD personnel?"),
        ("eod.robots", "Is your team equipped with robot(s) for EOD operations?"),
        ("eod.x-ray", "Does your team have access to x-ray capability for suspicious packages?"),
        ("eod.bomb-suits", "Does your team have or have access to EOD bomb suits?"),
        ("eod.disruptors", "Does your team have or have access to EOD disruption devices?"),
    )),
    ("Mobility, Transportation & Armor Support", (
        ("mobility.swat-vehicles", "Does your team have vehicles specifically equipped for SWAT operations?"),
        ("mobility.armored-vehicles", "Does your team have armored vehicles?"),
        ("mobility.breaching-platforms", "Does your team have vehicles with integrated breaching platforms?"),
        ("mobility.rescue-platforms", "Does your team have vehicles with rescue platforms?"),
        ("mobility.command-platforms", "Does your team have vehicles with mobile command & control platforms?"),
        ("mobility.off-road", "Does your team have off-road vehicle capabilities (ATVs, UTVs, dirt bikes)?"),
        ("mobility.snow-ice", "Does your team have snow and ice capabilities (Snowmobiles, ATVs w/tracks)?"),
        ("mobility.helicopters", "Does your team have access to helicopters for insertions?"),
        ("mobility.fixed-wing", "Does your team have access to fixed-wing aircraft?"),
        ("mobility.air-operations", "Does your team have air-operations capabilities?"),
        ("mobility.aircraft-rappel", "Does your team have rappel capabilities from aircraft?"),
        ("mobility.aircraft-fast-rope", "Does your team have fast-rope capabilities from aircraft?"),
        ("mobility.water-vessels", "Does your team have water vessels for tactical operations?"),
        ("mobility.maritime", "Does your team operate in maritime environments?"),
    )),
    ("Unique Environment & Technical Capabilities", (
        ("environment.dive", "Does your team have dive capabilities?"),
        ("environment.high-angle", "Does your team have mountain or high-angle rescue capabilities?"),
        ("environment.uas", "Does your team have drone/UAS capabilities?"),
        ("environment.robots", "Does your team have robots for tactical operations?"),
    )),
    ("SCBA & HAZMAT Capabilities", (
        ("hazmat.scba", "Does your team have SCBA equipment?"),
        ("hazmat.suits", "Does your team have HAZMAT suits?"),
    )),
    ("Tactical Emergency Medical Support (TEMS)", (
        ("tems.member", "Does your team have at least one TEMS member?"),
        ("tems.trauma-kits", "Does your team have trauma bags/kits?"),
        ("tems.litters", "Does your team have rescue litters/stretchers?"),
        ("tems.extraction", "Does your team have tactical extraction capabilities?"),
        ("tems.evac-operators", "Does your team have medical evacuation protocols for injured operators?"),
        ("tems.evac-suspects", "Does your team have medical evacuation protocols for injured suspects?"),
        ("tems.evac-civilians", "Does your team have medical evacuation protocols for injured civilians?"),
        ("tems.tecc-equipment", "Does your team maintain TECC equipment (tourniquets, hemostatics, etc.)?"),
        ("tems.needle-decompression", "Does your team have needle decompression capability?"),
        ("tems.chest-tube", "Does your team have chest tube capability?"),
        ("tems.surgical-airway", "Does your team have surgical airway capability?"),
    )),
    ("Negotiations & Crisis Response", (
        ("negotiations.dedicated-element", "Does your team have a dedicated negotiation element?"),
        ("negotiations.trained-negotiators", "Does your team have trained crisis negotiators?"),
        ("negotiations.equipment", "Does your team have negotiation equipment (throw phones, etc.)?"),
        ("negotiations.hostage-training", "Does your team train for hostage negotiation scenarios?"),
        ("negotiations.mental-health", "Does your team have mental health professionals available for consultations?"),
        ("negotiations.crisis-protocol", "Does your team have a crisis response protocol?"),
        ("negotiations.joint-training", "Does your team train jointly with negotiators?"),
    )),
)


def _question(entry: tuple) -> CanonicalQuestion:
    key, text, *rest = entry
    answer_type = AnswerType(rest[0]) if rest else AnswerType.BOOLEAN
    return CanonicalQuestion(key=key, text=text, answer_type=answer_type)


def build_template(
    categories: tuple[tuple[str, tuple[tuple, ...]], ...] = CATEGORIES,
    version: str = TEMPLATE_VERSION,
) -> Template:
    """Turn raw (name, entries) data into a Template, order index = position."""
    return Template(
        version=version,
        categories=tuple(
            CanonicalCategory(
                name=name,
                order_index=position,
                questions=tuple(_question(e) for e in entries),
            )
            for position, (name, entries) in enumerate(categories, start=1)
        ),
    )


@lru_cache(maxsize=1)
def get_template() -> Template:
    """Returns the cached canonical Template."""
    return build_template()


def category_description(name: str) -> str:
    """Description written on categories created by reconciliation."""
    return f"{CATEGORY_DESCRIPTION_PREFIX}{name}"
