import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Schema Revision ===")
try:
    cur.execute("SELECT version_num FROM alembic_version")
    rows = cur.fetchall()
    print(rows[0][0] if rows else "<base>")
except sqlite3.OperationalError:
    print("<no version table>")

print("\n=== products columns ===")
cur.execute("PRAGMA table_info(products)")
cols = cur.fetchall()
if not cols:
    print("<table missing>")
for cid, name, col_type, notnull, default, pk in cols:
    print(
        {
            "position": cid,
            "name": name,
            "type": col_type,
            "nullable": not notnull,
            "default": default,
            "primary_key": bool(pk),
        }
    )

if cols:
    print("\n=== Recent products ===")
    cur.execute(
        "SELECT id, name, price, image, created_at, updated_at FROM products ORDER BY id DESC LIMIT 20"
    )
    for r in cur.fetchall():
        print(r)

conn.close()
