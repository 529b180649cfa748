"""
Showcase 01: Parsing Extensions and Thesauri

This showcase demonstrates the public parsing API:
1. Parse a local extension definition (thesauri served from disk)
2. Inspect properties, row type and attached vocabularies
3. Inspect non-fatal data errors from a document with a broken link
4. Two-pass mode: prefetch every thesaurus before the rule pass
5. Load live extensions from rs.gbif.org concurrently

Key Points:
- One thesaurus fetch per URL per parse, shared Vocabulary instance
- Bad attribute values never abort a parse
- Each parse is independent (safe to run in threads)

Requirements:
- Internet connection for step 5 only

Status: Offline demo (steps 1-4) plus live rs.gbif.org demo (step 5)
"""

from pathlib import Path

print("=" * 80)
print("SHOWCASE 01: Parsing Extensions and Thesauri")
print("=" * 80)

# === Step 1: Setup ===

print("\n[Step 1] Importing modules...")
from dwca_extensions import ExtensionLoader, ExtensionParser, parse_extension
from dwca_extensions.config import ParserSettings, get_settings

FIXTURES = Path(__file__).parent.parent / 'tests' / 'fixtures'
SEX_URL = 'http://rs.gbif.org/vocabulary/gbif/sex.xml'


class LocalFetcher:
    """Serves the sex vocabulary from the test fixtures."""

    def __init__(self):
        self.calls = []

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        return (FIXTURES / 'sex.xml').read_bytes()


settings = get_settings()
print(f"  ✓ Settings loaded")
print(f"    - HTTP timeout: {settings.http_timeout}s")
print(f"    - Prefetch thesauri: {settings.prefetch_thesauri}")
print(f"    - Strict namespace: {settings.strict_namespace}")

# === Step 2: Parse a local extension ===

print("\n" + "=" * 80)
print("[Step 2] Parsing occurrence_identifier.xml")
print("=" * 80)

fetcher = LocalFetcher()
ext = parse_extension(
    FIXTURES / 'occurrence_identifier.xml',
    url='http://rs.gbif.org/extension/dwc/occurrence_identifier.xml',
    fetcher=fetcher
)

print(f"\n  ✓ {ext}")
print(f"    - Title: {ext.title}")
print(f"    - Row type: {ext.row_type.qualified_name if ext.row_type else 'unresolved'}")
print(f"    - Properties: {len(ext.properties)}")
for prop in ext.properties:
    vocab = f" → vocabulary '{prop.vocabulary.title}'" if prop.has_vocabulary else ''
    flag = ' (required)' if prop.required else ''
    print(f"      • {prop.name}{flag}{vocab}")

print(f"\n  ✓ Thesaurus fetches: {len(fetcher.calls)} for "
      f"{sum(1 for p in ext.properties if p.has_vocabulary)} references")

female = ext.properties[2].vocabulary.find_concept('female')
print(f"    - 'female' in German: {female.get_preferred_term('de').title}")

# === Step 3: Data errors ===

print("\n" + "=" * 80)
print("[Step 3] Non-fatal data errors")
print("=" * 80)

broken = b"""
<extension name="Broken Links" rowType="dwc:Occurrence" relation="not a url">
  <property name="sex" columnLength="wide" required="sometimes"/>
</extension>
"""

result = ExtensionParser(fetcher=LocalFetcher()).parse_extension(broken)
print(f"\n  ✓ Parsed {result.document.name} despite {len(result.data_errors)} bad values:")
for error in result.data_errors:
    print(f"      • {error}")

# === Step 4: Two-pass mode ===

print("\n" + "=" * 80)
print("[Step 4] Prefetching thesauri")
print("=" * 80)

fetcher = LocalFetcher()
parser = ExtensionParser(fetcher=fetcher, settings=ParserSettings(prefetch_thesauri=True))
prefetched = parser.parse(FIXTURES / 'occurrence_identifier.xml')
print(f"\n  ✓ Same result as on-demand: {prefetched.properties[2].vocabulary == ext.properties[2].vocabulary}")
print(f"    - Fetches: {fetcher.calls}")

# === Step 5: Live load ===

print("\n" + "=" * 80)
print("[Step 5] Loading live extensions from rs.gbif.org")
print("=" * 80)

urls = [
    'https://rs.gbif.org/extension/gbif/1.0/distribution.xml',
    'https://rs.gbif.org/extension/gbif/1.0/vernacularname.xml',
    'https://rs.gbif.org/extension/gbif/1.0/description.xml',
]

loaded = ExtensionLoader().load_many(urls, max_workers=3)
print(f"\n  ✓ {loaded.stats}")
for extension in loaded.extensions:
    print(f"      • {extension} ({len(extension.properties)} properties)")
for failure in loaded.failures:
    print(f"      ✗ {failure.url}: {failure.error_type} - {failure.error}")

print("\n" + "=" * 80)
print("SHOWCASE COMPLETE")
print("=" * 80)
