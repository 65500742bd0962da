"""Czech response texts and record rendering for query results."""

import json
from typing import Any, Dict, List, Mapping, Optional

from .search.interfaces import IndexStatistics, SearchResult, record_fields


ENTITY_LABELS: Dict[str, Dict[int, str]] = {
    "company": {1: "firma", 2: "firmy", 5: "firem"},
    "contact": {1: "kontakt", 2: "kontakty", 5: "kontaktů"},
    "activity": {1: "aktivita", 2: "aktivity", 5: "aktivit"},
    "deal": {1: "obchodní případ", 2: "obchodní případy", 5: "obchodních případů"},
}
DEFAULT_LABELS = {1: "záznam", 2: "záznamy", 5: "záznamů"}

NAME_FIELDS = ["name", "nazev", "title"]
PREVIEW_FIELDS = ["email", "telefon", "company", "value", "status"]
UNNAMED = "Bez názvu"

DEFAULT_MESSAGES = {
    "error": "Omlouvám se, nastala chyba při zpracování dotazu.",
    "no_results": 'Nenašel jsem žádné výsledky pro "{query}".',
    "no_records": "Nenašel jsem žádné záznamy.",
    "detail_not_found": 'Nenašel jsem žádné informace o "{query}".',
    "related_not_found": 'Nenašel jsem "{query}" pro zobrazení souvisejících dat.',
    "not_understood": (
        "Nerozuměl jsem vašemu dotazu. Zkuste se zeptat konkrétněji "
        "nebo použijte příklady z úvodní obrazovky."
    ),
    "count": "V databázi je celkem **{count} {label}**.",
    "version": "Používáte **{name} v{version}**",
}

HELP_TEXT = """**Co umím:**

📊 **Počítání** - "Kolik firem je v systému?"
📋 **Výpisy** - "Vypiš všechny kontakty"
🔍 **Vyhledávání** - "Najdi firmu Alza"
🔗 **Související data** - "Jaké kontakty má firma Microsoft?"
📈 **Statistiky** - "Zobraz statistiky systému"

**Tipy:**
- Používejte jména s velkým počátečním písmenem
- Pro přesné vyhledávání dejte text do uvozovek
- Můžete kombinovat různé typy dotazů"""


def entity_label(entity_type: Optional[str], count: int) -> str:
    """Noun form for ``count`` items (1 / 2-4 / 0 and 5+)."""
    labels = ENTITY_LABELS.get(entity_type or "", DEFAULT_LABELS)
    if count == 1:
        return labels[1]
    if 2 <= count <= 4:
        return labels[2]
    return labels[5]


def _display_value(value: Any) -> str:
    if isinstance(value, Mapping):
        fields = value.get("fields")
        if isinstance(fields, Mapping):
            for name_field in NAME_FIELDS:
                if fields.get(name_field):
                    return str(fields[name_field])
        if value.get("href"):
            return str(value["href"]).replace("mailto:", "")
        return ""
    if isinstance(value, list):
        return ", ".join(filter(None, (_display_value(item) for item in value)))
    return str(value)


def record_name(record: Mapping[str, Any]) -> str:
    fields = record_fields(record)

    for name_field in NAME_FIELDS:
        if fields.get(name_field):
            return _display_value(fields[name_field]) or UNNAMED

    if fields.get("jmeno") and fields.get("prijmeni"):
        return f"{fields['jmeno']} {fields['prijmeni']}"
    if fields.get("jmeno"):
        return str(fields["jmeno"])

    return UNNAMED


def record_preview(record: Mapping[str, Any], max_fields: int = 2) -> str:
    fields = record_fields(record)
    previews: List[str] = []

    for field_name in PREVIEW_FIELDS:
        if len(previews) >= max_fields:
            break
        if fields.get(field_name):
            text = _display_value(fields[field_name])
            if text:
                previews.append(text)

    return ", ".join(previews)


class ResponseFormatter:
    """Renders query results as Markdown-flavoured Czech text."""

    def __init__(self, messages: Optional[Dict[str, str]] = None, preview_fields: int = 2):
        self.messages = {**DEFAULT_MESSAGES, **(messages or {})}
        self.preview_fields = preview_fields

    def message(self, key: str, **params: Any) -> str:
        template = self.messages.get(key, key)
        for name, value in params.items():
            template = template.replace("{" + name + "}", str(value))
        return template

    def help_text(self) -> str:
        return self.messages.get("help", HELP_TEXT)

    def format_count(self, count: int, entity_type: Optional[str]) -> str:
        return self.message("count", count=count, label=entity_label(entity_type, count))

    def format_records_list(
        self,
        records: List[Mapping[str, Any]],
        entity_type: Optional[str],
        max_records: int,
    ) -> str:
        if not records:
            return self.message("no_records")

        lines = [f"**Nalezeno {len(records)} {entity_label(entity_type, len(records))}:**", ""]
        for index, record in enumerate(records[:max_records], start=1):
            line = f"{index}. **{record_name(record)}**"
            preview = record_preview(record, self.preview_fields)
            if preview:
                line += f" - {preview}"
            lines.append(line)

        output = "\n".join(lines) + "\n"
        if len(records) > max_records:
            output += f"\n... a dalších {len(records) - max_records} záznamů."
        return output

    def format_search_results(self, results: List[SearchResult], query: str) -> str:
        if not results:
            return self.message("no_results", query=query)

        lines = [f'**Výsledky vyhledávání pro "{query}":**', ""]
        for index, result in enumerate(results, start=1):
            label = entity_label(result.type, 1)
            lines.append(
                f"{index}. **{record_name(result.record)}** "
                f"({label}, shoda: {round(result.score * 100)}%)"
            )
        return "\n".join(lines) + "\n"

    def format_detailed_record(self, record: Mapping[str, Any]) -> str:
        """Raw field dump used as the plain-text fallback for AI narration."""
        return json.dumps(dict(record_fields(record)), indent=2, ensure_ascii=False, default=str)

    def format_related_summary(
        self,
        main_record: Mapping[str, Any],
        related_records: List[Mapping[str, Any]],
        related_type: Optional[str],
    ) -> str:
        count = len(related_records)
        return f"{record_name(main_record)} má {count} {entity_label(related_type, count)}."

    def format_statistics(self, stats: IndexStatistics) -> str:
        lines = ["**Statistiky systému:**", "", f"Celkem záznamů: **{stats.total}**", "", "Podle typu:"]
        for entity_type, count in stats.by_type.items():
            lines.append(f"- {entity_label(entity_type, count)}: **{count}**")
        return "\n".join(lines) + "\n"

    def format_version(self, name: str, version: str) -> str:
        return self.message("version", name=name, version=version)
