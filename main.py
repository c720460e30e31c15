#!/usr/bin/env python3
"""
Ministry CRM - Interactive Menu Launcher
Run this file to access all CRM commands through a simple menu.

Usage:
    python main.py
"""

import subprocess
import sys
import os

# Run the CLI with the same interpreter as this launcher
PYTHON = sys.executable
CRM = [PYTHON, "ministrycrm/cli/main.py"]

# Project root on PYTHONPATH so 'ministrycrm' package is importable
ENV = os.environ.copy()
ENV["PYTHONPATH"] = os.path.dirname(os.path.abspath(__file__))


def run(args: list[str]):
    """Run a CRM CLI command and return to menu when done."""
    print()
    subprocess.run(CRM + args, env=ENV)
    print()
    input("  Press Enter to return to menu...")


def prompt(label: str, required: bool = True) -> str:
    """Prompt user for input. Returns empty string if optional and skipped."""
    while True:
        value = input(f"  {label}: ").strip()
        if value:
            return value
        if not required:
            return ""
        print("  (required - please enter a value)")


def prompt_optional(label: str) -> str:
    return prompt(f"{label} (optional, Enter to skip)", required=False)


def clear():
    os.system("cls" if os.name == "nt" else "clear")


# =============================================================================
# COMMAND HANDLERS
# =============================================================================

def login():
    run(["login"])

def register():
    run(["register"])

def logout():
    run(["logout"])

def whoami():
    run(["whoami"])

def overview():
    run(["overview"])

def contacts_list():
    args = ["contacts", "list"]
    o = prompt_optional("Start at row (default: 0)")
    if o: args += ["--offset", o]
    run(args)

def contacts_show():
    cid = prompt("Contact ID")
    run(["contacts", "show", cid])

def contacts_add():
    run(["contacts", "add"])

def contacts_edit():
    cid = prompt("Contact ID")
    run(["contacts", "edit", cid])

def contacts_status():
    run(["statuses"])
    cid = prompt("Contact ID")
    sid = prompt("New status ID")
    args = ["contacts", "status", cid, sid]
    n = prompt_optional("Notes")
    if n: args += ["--notes", n]
    run(args)

def studies_list():
    args = ["studies", "list"]
    cid = prompt_optional("Contact ID (default: first contact)")
    if cid: args += ["--contact", cid]
    run(args)

def studies_add():
    cid = prompt("Contact ID")
    run(["studies", "add", cid])

def studies_edit():
    sid = prompt("Study ID")
    run(["studies", "edit", sid])

def studies_delete():
    sid = prompt("Study ID")
    run(["studies", "delete", sid])

def reservations_list():
    args = ["reservations", "list"]
    d = prompt_optional("Date YYYY-MM-DD (default: today)")
    r = prompt_optional("Room ID (default: all rooms)")
    if d: args += ["--date", d]
    if r: args += ["--room", r]
    run(args)

def reservations_book():
    args = ["reservations", "book"]
    d = prompt_optional("Date YYYY-MM-DD (default: today)")
    if d: args += ["--date", d]
    run(args)

def reservations_edit():
    rid = prompt("Reservation ID")
    args = ["reservations", "edit", rid]
    d = prompt_optional("Date YYYY-MM-DD (default: today)")
    if d: args += ["--date", d]
    run(args)

def reservations_cancel():
    rid = prompt("Reservation ID")
    run(["reservations", "cancel", rid])

def admin_rooms():
    run(["admin", "rooms", "list"])

def admin_rooms_add():
    run(["admin", "rooms", "add"])

def admin_rooms_edit():
    rid = prompt("Room ID")
    run(["admin", "rooms", "edit", rid])

def admin_rooms_delete():
    rid = prompt("Room ID")
    run(["admin", "rooms", "delete", rid])

def admin_lessons():
    run(["admin", "lessons", "list"])

def admin_lessons_add():
    run(["admin", "lessons", "add"])

def admin_lessons_edit():
    lid = prompt("Lesson ID")
    run(["admin", "lessons", "edit", lid])

def admin_lessons_delete():
    lid = prompt("Lesson ID")
    run(["admin", "lessons", "delete", lid])

def admin_users():
    run(["admin", "users"])


# =============================================================================
# MENU LAYOUT
# =============================================================================

MENU = [
    ("SESSION", [
        ("Log in",                       login),
        ("Register",                     register),
        ("Who am I",                     whoami),
        ("Log out",                      logout),
    ]),
    ("CONTACTS", [
        ("Overview by status",           overview),
        ("List contacts",                contacts_list),
        ("Show contact details",         contacts_show),
        ("Add new contact",              contacts_add),
        ("Edit contact",                 contacts_edit),
        ("Change contact status",        contacts_status),
    ]),
    ("BIBLE STUDIES", [
        ("Show studies for a contact",   studies_list),
        ("Record a study",               studies_add),
        ("Edit a study",                 studies_edit),
        ("Delete a study",               studies_delete),
    ]),
    ("RESERVATIONS", [
        ("Reservations for a day",       reservations_list),
        ("Book a room",                  reservations_book),
        ("Edit a reservation",           reservations_edit),
        ("Cancel a reservation",         reservations_cancel),
    ]),
    ("ADMIN", [
        ("List rooms",                   admin_rooms),
        ("Add room",                     admin_rooms_add),
        ("Edit room",                    admin_rooms_edit),
        ("Delete room",                  admin_rooms_delete),
        ("List lessons",                 admin_lessons),
        ("Add lesson",                   admin_lessons_add),
        ("Edit lesson",                  admin_lessons_edit),
        ("Delete lesson",                admin_lessons_delete),
        ("List users",                   admin_users),
    ]),
]


def print_menu():
    clear()
    print("=" * 50)
    print("   MINISTRY CRM - COMMAND CENTRE")
    print("=" * 50)

    n = 1
    numbering = {}  # maps display number -> handler function

    for section, commands in MENU:
        print(f"\n  {section}")
        print(f"  {'-' * len(section)}")
        for label, handler in commands:
            print(f"  {n:>2}.  {label}")
            numbering[n] = handler
            n += 1

    print("\n" + "=" * 50)
    print("   0.  Exit")
    print("=" * 50)
    return numbering


def main():
    while True:
        numbering = print_menu()

        try:
            choice = input("\n  Select a command: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n  Goodbye!\n")
            break

        if choice == "0" or choice.lower() in ("q", "quit", "exit"):
            print("\n  Goodbye!\n")
            break

        try:
            n = int(choice)
            if n in numbering:
                clear()
                numbering[n]()
            else:
                print(f"\n  Invalid selection: {choice}")
                input("  Press Enter to continue...")
        except ValueError:
            print(f"\n  Please enter a number.")
            input("  Press Enter to continue...")


if __name__ == "__main__":
    main()
