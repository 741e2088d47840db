from tabulate import tabulate
from app import create_app
from database import db
from database.models import Tournament, Team, Player, PlayerMatchScore, Match, ScoreEntry, Wicket

# Map friendly names to Models
MODELS = {
    "1": ("Tournaments", Tournament),
    "2": ("Teams", Team),
    "3": ("Players", Player),
    "4": ("Matches", Match),
    "5": ("Score Entries", ScoreEntry),
    "6": ("Wickets", Wicket),
    "7": ("Player Match Scores", PlayerMatchScore),
}


def table_rows(model_class):
    """Return (columns, rows) for every record of model_class."""
    columns = [c.name for c in model_class.__table__.columns]
    records = db.session.execute(db.select(model_class)).scalars().all()

    data = []
    for r in records:
        row = []
        for c in columns:
            val = getattr(r, c)
            # Truncate long strings for display
            if isinstance(val, str) and len(val) > 50:
                val = val[:47] + "..."
            row.append(val)
        data.append(row)
    return columns, data


def view_table(model_name, model_class):
    print(f"\n--- {model_name} ---\n")
    columns, data = table_rows(model_class)
    if not data:
        print("No records found.")
        return

    print(tabulate(data, headers=columns, tablefmt="grid"))
    print(f"\nTotal: {len(data)} records")


def main():
    app = create_app()
    with app.app_context():
        while True:
            print("\n" + "=" * 40)
            print(" CRICTRACK DATABASE VIEWER")
            print("=" * 40)
            for key, (name, _) in MODELS.items():
                print(f"{key}. {name}")
            print("q. Quit")

            choice = input(f"\nSelect a table to view (1-{len(MODELS)}): ").strip().lower()

            if choice == 'q':
                break

            if choice in MODELS:
                name, model = MODELS[choice]
                view_table(name, model)
            else:
                print("Invalid selection.")


if __name__ == "__main__":
    main()
