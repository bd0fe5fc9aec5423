"""
reset_data.py
-------------
Clear every collection (accounts, vehicles, pending, budgets, codes) from the
local data.pkl file, for development and testing.

Usage:
    $ python reset_data.py

Repopulate sample data afterwards with:
    $ python seeds.py
"""

from rentari.models.store import Store


def main():
    store = Store.instance()
    store.clear()
    print("data.pkl has been cleared.")
    print("Tip: run `python seeds.py` to regenerate demo data.")


if __name__ == "__main__":
    main()
