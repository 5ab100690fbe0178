from typing import NamedTuple


class PowerSeed(NamedTuple):
    rank: str
    name: str
    description: str
    base_cp: int

    @property
    def base_price(self) -> int:
        return self.base_cp * 10


DEFAULT_POWERS: tuple[PowerSeed, ...] = (
    PowerSeed("Normal", "Basic Combat Training", "Foundation of all military combat", 45),
    PowerSeed("Normal", "Vertical Maneuvering Equipment", "Standard ODM gear for mobility", 50),
    PowerSeed("Normal", "Thunder Spear", "Explosive spear for titan combat", 60),
    PowerSeed("Normal", "Blade Mastery", "Expert dual blade techniques", 55),
    PowerSeed("Normal", "Scout Regiment Training", "Enhanced reconnaissance skills", 52),
    PowerSeed("Normal", "Garrison Regiment Discipline", "Wall defense expertise", 48),
    PowerSeed("Normal", "Horse Riding Mastery", "Expert cavalry skills", 47),
    PowerSeed("Normal", "Titan Tracking", "Titan movement prediction", 52),
    PowerSeed("Rare", "Enhanced Strength", "Superhuman physical capabilities", 250),
    PowerSeed("Rare", "Steam Release", "Release scalding steam defense", 230),
    PowerSeed("Rare", "Titan Hardening", "Harden skin for defense and offense", 280),
    PowerSeed("Rare", "Regeneration", "Rapid healing of wounds", 270),
    PowerSeed("Rare", "Partial Transformation", "Limited titan transformation", 290),
    PowerSeed("Rare", "Ackerman Awakening", "Partial Ackerman bloodline power", 320),
    PowerSeed("Epic", "Armored Titan Power", "Massive armored defensive form", 950),
    PowerSeed("Epic", "Colossal Titan Power", "Enormous size with steam attacks", 1100),
    PowerSeed("Epic", "Female Titan Power", "Agile form with hardening", 900),
    PowerSeed("Epic", "Beast Titan Power", "Intelligent throwing abilities", 1000),
    PowerSeed("Epic", "Cart Titan Power", "Endurance with equipment carrying", 850),
    PowerSeed("Epic", "Jaw Titan Power", "Swift with powerful bite", 950),
    PowerSeed("Legendary", "Attack Titan Power", "Attack Titan with future memories", 2200),
    PowerSeed("Legendary", "Warhammer Titan Power", "Create weapons and structures", 2300),
    PowerSeed("Legendary", "Progenitor Titan Fragment", "Incomplete original Founding power", 2500),
    PowerSeed("Legendary", "Paths Manipulation", "Limited paths dimension control", 2350),
    PowerSeed("Legendary", "Nine Titans Harmony", "Unify multiple titan powers", 2600),
    PowerSeed("Mythic", "Founding Titan Power", "Ultimate titan control coordinate", 5500),
    PowerSeed("Mythic", "Ackerman Bloodline", "Awakened superhuman Ackerman powers", 5200),
    PowerSeed("Mythic", "Royal Blood", "Royal Fritz commanding authority", 5000),
    PowerSeed("Mythic", "Ymir Original Power", "First titan source power", 6000),
    PowerSeed("Mythic", "Rumbling Command", "Ultimate wall titan authority", 5900),
    PowerSeed("Divine", "Creator Titan Power", "Divine power to create titan types", 9500),
    PowerSeed("Divine", "Reality Coordinate", "Alter reality through coordinate", 10200),
    PowerSeed("Divine", "Time Manipulation Lord", "Control past, present, future", 11500),
    PowerSeed("Cosmic", "Conceptual Titan", "Titan as pure concept", 20000),
    PowerSeed("Cosmic", "Reality Titan", "Titan form of reality itself", 25000),
    PowerSeed("Transcendent", "Meta-Titan", "Titan beyond titan concepts", 40000),
    PowerSeed("Transcendent", "Beyond Existence", "Power beyond existence itself", 45000),
    PowerSeed("Omnipotent", "Omnipotent Titan", "Titan with unlimited power", 75000),
    PowerSeed("Omnipotent", "Perfect Omnipotence", "Omnipotence in perfect form", 85000),
    PowerSeed("Absolute", "The Absolute Titan", "Power without any limit", 500000),
)
"""Attack on Titan themed catalog, only the drawable ranks are reachable through gacha"""
