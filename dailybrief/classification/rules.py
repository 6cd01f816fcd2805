"""
Routing rules for the heuristic classifier.

Concept: an ordered table of (bucket, destination, patterns) entries.
Evaluation order is declaration order, and rules naming a specific entity
(a club, a competition) are declared before the generic "league" rules of
the same family. A generic rule only wins when no specific rule fires.

Principle: pure data. No side effects at import beyond regex compilation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import NamedTuple


class Route(NamedTuple):
    section: str
    subsection: str

    def __str__(self) -> str:
        return f"{self.section}.{self.subsection}"


@dataclass(frozen=True)
class Rule:
    """
    One routing rule.

    A rule fires when the sentence comes from ``bucket``, any of ``patterns``
    matches and, if ``requires`` is non-empty, any of ``requires`` matches
    too (used to disambiguate clubs that field both football and
    basketball teams).
    """

    bucket: str
    route: Route
    patterns: tuple[re.Pattern[str], ...]
    requires: tuple[re.Pattern[str], ...] = ()
    generic: bool = False

    def matches(self, sentence: str) -> bool:
        if not any(p.search(sentence) for p in self.patterns):
            return False
        if self.requires and not any(p.search(sentence) for p in self.requires):
            return False
        return True


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


def _rule(
    bucket: str,
    route: str,
    *patterns: str,
    requires: tuple[str, ...] = (),
    generic: bool = False,
) -> Rule:
    section, subsection = route.split(".", 1)
    return Rule(
        bucket=bucket,
        route=Route(section, subsection),
        patterns=_compile(*patterns),
        requires=_compile(*requires),
        generic=generic,
    )


_BASKETBALL_CONTEXT = (r"\bbasketball\b", r"\beuroleague\b", r"\bbasket\b", r"\bpoints?\b")

NEWS_RULES: tuple[Rule, ...] = (
    _rule("news", "news.cyprus", r"\bcyprus\b", r"\bnicosia\b", r"\blimassol\b", r"\blarnaca\b"),
    _rule("news", "news.greece", r"\bgreece\b", r"\bgreek\b", r"\bathens\b", r"\bthessaloniki\b"),
    _rule("news", "news.world", r"\bworld\b", r"\bworldwide\b", r"\bglobal\b", r"\binternational\b"),
)

TECH_RULES: tuple[Rule, ...] = (
    _rule("tech", "tech.cs", r"\bcomputer science\b", r"\bresearch\b", r"\bpaper\b", r"\bbenchmark\b"),
    _rule(
        "tech",
        "tech.programming",
        r"\bprogramming\b",
        r"\blanguage\b",
        r"\bcompiler\b",
        r"\btypescript\b",
        r"\bpython\b",
        r"\brust\b",
    ),
    _rule("tech", "tech.ai_llm", r"\bai\b", r"\bllms?\b", r"\bmodel\b", r"\binference\b", r"\bprompt\b"),
    _rule(
        "tech",
        "tech.other",
        r"\bengineering\b",
        r"\bplatform\b",
        r"\binfrastructure\b",
        r"\bdevops\b",
        r"\barchitecture\b",
    ),
)

SPORTS_RULES: tuple[Rule, ...] = (
    # EuroLeague clubs sharing a name with a football club need basketball context
    _rule("sports", "euroleague.olympiacos", r"\bolympiacos\b", r"\bolympiakos\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.panathinaikos", r"\bpanathinaikos\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.real_madrid", r"\breal madrid\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.fc_barcelona", r"\bbarcelona\b", r"\bbarca\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.bayern_munich", r"\bbayern\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.as_monaco", r"\bmonaco\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.fenerbahce", r"\bfenerbah[cç]e\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.partizan", r"\bpartizan\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.crvena_zvezda", r"\bcrvena zvezda\b", r"\bred star\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.maccabi_tel_aviv", r"\bmaccabi\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.hapoel_tel_aviv", r"\bhapoel\b", requires=_BASKETBALL_CONTEXT),
    _rule("sports", "euroleague.anadolu_efes", r"\banadolu efes\b", r"\befes\b"),
    _rule("sports", "euroleague.baskonia", r"\bbaskonia\b"),
    _rule("sports", "euroleague.olimpia_milano", r"\bolimpia milano\b", r"\bea7\b"),
    _rule("sports", "euroleague.paris_basketball", r"\bparis basketball\b"),
    _rule("sports", "euroleague.valencia_basket", r"\bvalencia basket\b"),
    _rule("sports", "euroleague.virtus_bologna", r"\bvirtus\b"),
    _rule("sports", "euroleague.zalgiris", r"\bzalgiris\b"),
    _rule("sports", "euroleague.asvel", r"\basvel\b", r"\bvilleurbanne\b"),
    _rule("sports", "euroleague.dubai_bc", r"\bdubai\b"),
    # Greek Super League clubs
    _rule("sports", "greek_super_league.olympiacos_piraeus", r"\bolympiacos\b", r"\bolympiakos\b"),
    _rule("sports", "greek_super_league.aek_athens", r"\baek athens\b"),
    _rule("sports", "greek_super_league.panathinaikos_fc", r"\bpanathinaikos\b"),
    _rule("sports", "greek_super_league.paok_fc", r"\bpaok\b"),
    _rule("sports", "greek_super_league.aris_fc", r"\baris\b"),
    # Cyprus clubs
    _rule("sports", "cyprus_football.apollon_limassol", r"\bapollon\b"),
    _rule("sports", "cyprus_football.ael_limassol", r"\bael\b"),
    _rule("sports", "cyprus_football.apoel_nicosia", r"\bapoel\b"),
    _rule("sports", "cyprus_football.omonoia_nicosia", r"\bomonoia\b", r"\bomonia\b"),
    _rule("sports", "cyprus_football.anorthosis_famagusta", r"\banorthosis\b"),
    _rule("sports", "cyprus_football.aek_larnaka", r"\baek larnaka\b", r"\baek larnaca\b"),
    # European club competitions and domestic leagues
    _rule("sports", "european_football.champions_league", r"\bchampions league\b", r"\bucl\b"),
    _rule("sports", "european_football.europa_league", r"\beuropa league\b"),
    _rule("sports", "european_football.conference_league", r"\bconference league\b"),
    _rule("sports", "european_football.premier_league", r"\bpremier league\b"),
    _rule("sports", "european_football.la_liga", r"\bla liga\b"),
    _rule("sports", "european_football.serie_a", r"\bserie a\b"),
    _rule("sports", "european_football.ligue_1", r"\bligue 1\b"),
    _rule("sports", "european_football.bundesliga", r"\bbundesliga\b"),
    # National teams
    _rule("sports", "national_football.world_cup", r"\bworld cup\b"),
    _rule("sports", "national_football.nations_league", r"\bnations league\b"),
    _rule("sports", "national_football.copa_africa", r"\bafrica cup\b", r"\bafcon\b"),
    _rule("sports", "national_football.copa_america", r"\bcopa am[eé]rica\b"),
    _rule("sports", "national_football.euro", r"\beuro 20\d\d\b", r"\buefa euro\b", r"\beuros\b"),
    # League-level catch-alls
    _rule("sports", "euroleague.euroleague_general", r"\beuroleague\b", r"\bbasketball\b", generic=True),
    _rule("sports", "greek_super_league.greek_super_league_general", r"\bsuper league\b", r"\bgreek\b", generic=True),
    _rule(
        "sports",
        "cyprus_football.cyprus_league_general",
        r"\bcyprus\b",
        r"\bcypriot\b",
        r"\bfirst division\b",
        generic=True,
    ),
)

RULES: tuple[Rule, ...] = NEWS_RULES + TECH_RULES + SPORTS_RULES


def match_rule(sentence: str, bucket: str, rules: tuple[Rule, ...] = RULES) -> Rule | None:
    """
    Return the winning rule for a sentence, or None.

    The first matching non-generic rule wins; when only generic rules fire,
    the first of those wins.
    """
    first_generic: Rule | None = None
    for rule in rules:
        if rule.bucket != bucket or not rule.matches(sentence):
            continue
        if not rule.generic:
            return rule
        if first_generic is None:
            first_generic = rule
    return first_generic
