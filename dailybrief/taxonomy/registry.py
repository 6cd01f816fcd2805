"""
Taxonomy Registry - static definition of sections and subsections.

Every other component reads from here: the extraction prompt renders the
schema from it, empty issues are pre-populated from it, and the heuristic
classifier and sports unifier route into its subsection keys.

The registry is built once at import time and exposes read-only views.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

SUPPORTED_LANGUAGES = ("en", "el")


class UnknownSection(KeyError):
    """Raised when a section key is not part of the taxonomy."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Unknown section: {self.key!r}"


@dataclass(frozen=True)
class SubsectionDefinition:
    key: str
    label: str
    label_el: str

    def label_for(self, language: str = "en") -> str:
        return self.label_el if language == "el" else self.label


@dataclass(frozen=True)
class SectionDefinition:
    """
    One top-level section.

    source_bucket names the raw text bucket that feeds this section
    ("news", "tech", "sports"); None means the section is filled from a
    structured data source instead of free text.
    """

    key: str
    title_key: str
    fallback_cover: str
    default_subsection: str
    subsections: tuple[SubsectionDefinition, ...]
    source_bucket: str | None = None

    def subsection_keys(self) -> tuple[str, ...]:
        return tuple(sub.key for sub in self.subsections)

    def subsection(self, key: str) -> SubsectionDefinition | None:
        for sub in self.subsections:
            if sub.key == key:
                return sub
        return None


def _sub(key: str, label: str, label_el: str) -> SubsectionDefinition:
    return SubsectionDefinition(key=key, label=label, label_el=label_el)


SECTION_DEFINITIONS: tuple[SectionDefinition, ...] = (
    SectionDefinition(
        key="news",
        title_key="news",
        fallback_cover="/news.png",
        default_subsection="world",
        source_bucket="news",
        subsections=(
            _sub("cyprus", "Cyprus", "Κύπρος"),
            _sub("greece", "Greece", "Ελλάδα"),
            _sub("world", "Worldwide", "Κόσμος"),
        ),
    ),
    SectionDefinition(
        key="tech",
        title_key="tech",
        fallback_cover="/tech.png",
        default_subsection="other",
        source_bucket="tech",
        subsections=(
            _sub("cs", "Computer Science", "Επιστήμη Υπολογιστών"),
            _sub("programming", "Programming", "Προγραμματισμός"),
            _sub("ai_llm", "AI/LLMs", "AI/LLM"),
            _sub("other", "Engineering", "Μηχανική"),
        ),
    ),
    SectionDefinition(
        key="cyprus_football",
        title_key="cyprusFootball",
        fallback_cover="/news.png",
        default_subsection="cyprus_league_general",
        source_bucket="sports",
        subsections=(
            _sub("cyprus_league_general", "Cyprus League (General)", "Πρωτάθλημα Κύπρου (Γενικά)"),
            _sub("apollon_limassol", "Apollon Limassol", "Απόλλων Λεμεσού"),
            _sub("ael_limassol", "AEL Limassol", "ΑΕΛ Λεμεσού"),
            _sub("apoel_nicosia", "APOEL Nicosia", "ΑΠΟΕΛ Λευκωσίας"),
            _sub("omonoia_nicosia", "Omonoia Nicosia", "Ομόνοια Λευκωσίας"),
            _sub("anorthosis_famagusta", "Anorthosis Famagusta", "Ανόρθωση Αμμοχώστου"),
            _sub("aek_larnaka", "AEK Larnaka", "ΑΕΚ Λάρνακας"),
        ),
    ),
    SectionDefinition(
        key="greek_super_league",
        title_key="greekSuperLeague",
        fallback_cover="/news.png",
        default_subsection="greek_super_league_general",
        source_bucket="sports",
        subsections=(
            _sub(
                "greek_super_league_general",
                "Greek Super League (General)",
                "Ελληνική Super League (Γενικά)",
            ),
            _sub("olympiacos_piraeus", "Olympiacos Piraeus", "Ολυμπιακός Πειραιώς"),
            _sub("aek_athens", "AEK Athens", "ΑΕΚ Αθήνας"),
            _sub("panathinaikos_fc", "Panathinaikos FC", "Παναθηναϊκός"),
            _sub("paok_fc", "PAOK FC", "ΠΑΟΚ"),
            _sub("aris_fc", "Aris FC", "Άρης"),
        ),
    ),
    SectionDefinition(
        key="euroleague",
        title_key="euroleague",
        fallback_cover="/tech.png",
        default_subsection="euroleague_general",
        source_bucket="sports",
        subsections=(
            _sub("euroleague_general", "EuroLeague (General)", "EuroLeague (Γενικά)"),
            _sub("anadolu_efes", "Anadolu Efes", "Αναντολού Εφές"),
            _sub("as_monaco", "AS Monaco", "AS Μονακό"),
            _sub("baskonia", "Baskonia", "Μπασκόνια"),
            _sub("crvena_zvezda", "Crvena Zvezda", "Ερυθρός Αστέρας"),
            _sub("fenerbahce", "Fenerbahce", "Φενέρμπαχτσε"),
            _sub("fc_barcelona", "FC Barcelona", "Μπαρτσελόνα"),
            _sub("bayern_munich", "Bayern Munich", "Μπάγερν Μονάχου"),
            _sub("maccabi_tel_aviv", "Maccabi Tel Aviv", "Μακάμπι Τελ Αβίβ"),
            _sub("olimpia_milano", "Olimpia Milano", "Ολίμπια Μιλάνο"),
            _sub("olympiacos", "Olympiacos", "Ολυμπιακός"),
            _sub("panathinaikos", "Panathinaikos", "Παναθηναϊκός"),
            _sub("paris_basketball", "Paris Basketball", "Paris Basketball"),
            _sub("partizan", "Partizan", "Παρτιζάν"),
            _sub("real_madrid", "Real Madrid", "Ρεάλ Μαδρίτης"),
            _sub("valencia_basket", "Valencia Basket", "Βαλένθια"),
            _sub("virtus_bologna", "Virtus Bologna", "Βίρτους Μπολόνια"),
            _sub("zalgiris", "Zalgiris Kaunas", "Ζαλγκίρις Κάουνας"),
            _sub("asvel", "ASVEL Villeurbanne", "ASVEL Βιλερμπάν"),
            _sub("hapoel_tel_aviv", "Hapoel Tel Aviv", "Χάποελ Τελ Αβίβ"),
            _sub("dubai_bc", "Dubai BC", "Dubai BC"),
        ),
    ),
    SectionDefinition(
        key="european_football",
        title_key="europeanFootball",
        fallback_cover="/news.png",
        default_subsection="champions_league",
        source_bucket="sports",
        subsections=(
            _sub("champions_league", "UEFA Champions League", "UEFA Champions League"),
            _sub("europa_league", "UEFA Europa League", "UEFA Europa League"),
            _sub("conference_league", "UEFA Conference League", "UEFA Conference League"),
            _sub("premier_league", "Premier League", "Premier League"),
            _sub("la_liga", "La Liga", "La Liga"),
            _sub("serie_a", "Serie A", "Serie A"),
            _sub("ligue_1", "Ligue 1", "Ligue 1"),
            _sub("bundesliga", "Bundesliga", "Bundesliga"),
        ),
    ),
    SectionDefinition(
        key="national_football",
        title_key="nationalFootball",
        fallback_cover="/news.png",
        default_subsection="euro",
        source_bucket="sports",
        subsections=(
            _sub("euro", "UEFA Euro", "UEFA Euro"),
            _sub("world_cup", "FIFA World Cup", "FIFA World Cup"),
            _sub("nations_league", "UEFA Nations League", "UEFA Nations League"),
            _sub("copa_africa", "Africa Cup of Nations", "Κύπελλο Εθνών Αφρικής"),
            _sub("copa_america", "Copa America", "Copa America"),
        ),
    ),
    SectionDefinition(
        key="match_center",
        title_key="matchCenter",
        fallback_cover="/tech.png",
        default_subsection="football_cyprus_league",
        source_bucket=None,
        subsections=(
            _sub("football_cyprus_league", "Football · Cyprus League", "Ποδόσφαιρο · Κυπριακό Πρωτάθλημα"),
            _sub(
                "football_greek_super_league",
                "Football · Greek Super League",
                "Ποδόσφαιρο · Ελληνική Super League",
            ),
            _sub(
                "football_champions_league",
                "Football · Champions League",
                "Ποδόσφαιρο · Champions League",
            ),
            _sub("football_europa_league", "Football · Europa League", "Ποδόσφαιρο · Europa League"),
            _sub(
                "football_conference_league",
                "Football · Conference League",
                "Ποδόσφαιρο · Conference League",
            ),
            _sub("football_premier_league", "Football · Premier League", "Ποδόσφαιρο · Premier League"),
            _sub("football_bundesliga", "Football · Bundesliga", "Ποδόσφαιρο · Bundesliga"),
            _sub("football_serie_a", "Football · Serie A", "Ποδόσφαιρο · Serie A"),
            _sub("football_ligue_1", "Football · Ligue 1", "Ποδόσφαιρο · Ligue 1"),
            _sub("football_la_liga", "Football · La Liga", "Ποδόσφαιρο · La Liga"),
            _sub("basketball_euroleague", "Basketball · EuroLeague", "Μπάσκετ · EuroLeague"),
            _sub(
                "basketball_greek_league",
                "Basketball · Greek Basketball League",
                "Μπάσκετ · Ελληνική Basket League",
            ),
            _sub("national_euro", "National Teams · UEFA Euro", "Εθνικές Ομάδες · UEFA Euro"),
            _sub(
                "national_world_cup",
                "National Teams · FIFA World Cup",
                "Εθνικές Ομάδες · FIFA World Cup",
            ),
            _sub(
                "national_nations_league",
                "National Teams · Nations League",
                "Εθνικές Ομάδες · Nations League",
            ),
        ),
    ),
)


def label_from_key(key: str) -> str:
    """Derive a display label for a subsection key the taxonomy does not know."""
    return " ".join(part[:1].upper() + part[1:] for part in key.split("_") if part)


class TaxonomyRegistry:
    """
    Read-only lookup over the section definitions.

    Construction validates that keys are unique and that every default
    subsection exists; after that nothing can be mutated.
    """

    def __init__(self, definitions: tuple[SectionDefinition, ...]) -> None:
        by_key: dict[str, SectionDefinition] = {}
        for section in definitions:
            if section.key in by_key:
                raise ValueError(f"Duplicate section key: {section.key}")
            if section.subsection(section.default_subsection) is None:
                raise ValueError(
                    f"Section {section.key} default subsection "
                    f"{section.default_subsection!r} is not defined"
                )
            by_key[section.key] = section

        self._definitions = tuple(definitions)
        self._by_key: Mapping[str, SectionDefinition] = MappingProxyType(by_key)

    def __iter__(self) -> Iterator[SectionDefinition]:
        return iter(self._definitions)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __len__(self) -> int:
        return len(self._definitions)

    def get(self, key: str) -> SectionDefinition:
        try:
            return self._by_key[key]
        except KeyError:
            raise UnknownSection(key) from None

    def sections(self) -> tuple[SectionDefinition, ...]:
        return self._definitions

    def section_keys(self) -> tuple[str, ...]:
        return tuple(self._by_key)

    def title_key(self, key: str) -> str:
        return self.get(key).title_key

    def fallback_cover(self, key: str) -> str:
        return self.get(key).fallback_cover

    def default_subsection(self, key: str) -> str:
        return self.get(key).default_subsection

    def subsection_label(self, section_key: str, subsection_key: str, language: str = "en") -> str:
        sub = self.get(section_key).subsection(subsection_key)
        if sub is None:
            return label_from_key(subsection_key)
        return sub.label_for(language)

    def sections_for_bucket(self, bucket: str) -> tuple[SectionDefinition, ...]:
        return tuple(section for section in self._definitions if section.source_bucket == bucket)

    def label_translations(self, language: str = "el") -> dict[str, str]:
        """Map English subsection labels to their label in ``language``."""
        return {
            sub.label: sub.label_for(language)
            for section in self._definitions
            for sub in section.subsections
        }


REGISTRY = TaxonomyRegistry(SECTION_DEFINITIONS)
