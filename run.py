from leverage_tracker import create_app
from leverage_tracker.extensions import db
from leverage_tracker.schema import upgrade_schema

app = create_app()

# Create DB and tables if they don't exist (dev convenience)
if app.config["STORE_BACKEND"] == "sql":
    with app.app_context():
        db.create_all()
        upgrade_schema()

if __name__ == "__main__":
    # Debug on by default for development
    app.run(debug=True, host="127.0.0.1", port=5000)
