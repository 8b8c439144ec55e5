from __future__ import annotations

from pprint import pprint

from renomatch import config
from renomatch.adapters.directory import JsonContractorDirectory
from renomatch.adapters.rvo import RvoCertificationVerifier, RvoSchemeRegistry
from renomatch.verification import verify_all


def main() -> int:
    # --- Preflight ---
    if not config.rvo_configured():
        print("ERROR: Set RVO_API_KEY in the environment")
        return 2

    print("=== RenoMatch Smoke Test: RVO ===")
    print(f"RVO API: {config.RVO_API_URL}")
    print("")

    # --- Schemes ---
    print(">>> Fetching RVO subsidy schemes...")
    schemes = RvoSchemeRegistry().fetch_schemes()
    print(f"RVO returned: {len(schemes)} schemes")
    if schemes:
        print("Scheme sample:")
        pprint(schemes[0].to_dict())
    print("")

    # --- Certifications ---
    print(">>> Verifying installers from the local directory...")
    providers = JsonContractorDirectory(config.CONTRACTORS_FILE).fetch_contractors("", 100)
    vcfg = config.load_verification_config()
    records = verify_all(
        providers,
        RvoCertificationVerifier(),
        max_workers=vcfg.max_workers,
        timeout_seconds=vcfg.timeout_seconds,
    )
    print(f"Verified: {len(records)} of {len(providers)}")
    for provider_id, record in records.items():
        print(f"  {provider_id}: {record.company_name} rvo={record.rvo} isso={record.isso} komo={record.komo}")
    print("")

    # --- Basic schema assertions ---
    print(">>> Running basic schema assertions...")
    for s in schemes[:3]:
        assert s.scheme_id and s.name
        assert 0.0 <= s.budget_remaining <= 100.0
        assert s.application_deadline is not None
    print("OK ✅")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
