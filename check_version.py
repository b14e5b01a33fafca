import json

from app.db.session import SessionLocal
from app.services.conflict_service import analyze_grid
from app.services.version_store import VersionStore

db = SessionLocal()
try:
    store = VersionStore(db)
    latest, grid = store.load_latest()
    print(f"Versions: {store.list_versions()}")
    print(f"Selected: {store.selected_version()}")
    if latest is not None:
        analysis = analyze_grid(grid)
        print(f"Latest: {latest}")
        print(f"Stats: {json.dumps(analysis.stats.model_dump(mode='json'), indent=2)}")
        for conflict in analysis.conflicts:
            print(f"  - {conflict.day.value} {conflict.time}: {conflict.message}")
    else:
        print("No versions found.")
finally:
    db.close()
