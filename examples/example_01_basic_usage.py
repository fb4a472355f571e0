"""Example 01: Basic Usage - autotable Fundamentals.

This example demonstrates the fundamental operations:
- Defining records with plain annotations and width markers
- Creating, saving, updating and deleting records
- Finding records by identity, by column value and by SQL predicate
- Round-tripping records through JSON
"""

from enum import Enum

from autotable import AutotableConfig, Int16, Manager, NotFoundError, Record


class Status(Enum):
    ACTIVE = "active"
    RETIRED = "retired"


class Person(Record):
    """A person in our system."""

    email: str
    name: str
    age: Int16 = 0
    status: Status | None = None


def main():
    """Run the basic usage example."""
    print("=" * 80)
    print("AUTOTABLE BASIC USAGE EXAMPLE")
    print("=" * 80)

    # Stores live in data_dir; the first save creates tmp/people.db and the table.
    config = AutotableConfig(data_dir="tmp", default_store="people")
    people = Manager(Person, config)
    people.drop_table()

    print("\nAdding people...")
    for email, name, age in [
        ("alice@example.com", "Alice Smith", 32),
        ("bob@example.com", "Bob Jones", 45),
        ("carol@example.com", "Carol White", 28),
    ]:
        person = people.create()
        person.email = email
        person.name = name
        person.age = age
        person.status = Status.ACTIVE
        person.save()
        print(f"  ✓ saved {person.name} as id {person.id}")

    print(f"\nRow count: {people.count()}")

    print("\nPeople over 30, oldest first:")
    for person in people.where("age > ?", [30], order_by="age DESC"):
        print(f"  - {person.name} ({person.age})")

    bob = people.find_by_unique_key("email", "bob@example.com")
    bob.status = Status.RETIRED
    bob.save()
    print(f"\nUpdated: {people.find(bob.id)!r}")

    print("\nJSON round trip:")
    text = bob.to_json()
    print(f"  {text}")
    copy = people.create(text)
    print(f"  parsed back as unsaved copy: {copy!r}")

    carol = people.find_by_unique_key("name", "Carol White")
    carol.delete()
    try:
        people.find(carol.id)
    except NotFoundError as e:
        print(f"\nAfter delete: {e}")

    people.close_store()


if __name__ == "__main__":
    main()
