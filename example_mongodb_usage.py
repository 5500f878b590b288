"""
Example usage of the query layer with MongoDB.

Walks through the user-record flows the snack-track bot runs against the
users collection: registering a user, tracking an address, changing
settings, and reading users back for a notification.
"""

import logging

from snack_query import (
    AggregateKey,
    AggregateKeys,
    AggregateOperator,
    DataType,
    Filter,
    Filters,
    GroupKey,
    GroupKeys,
    MongoDataStore,
    NotFoundError,
    Operator,
    Order,
    SortKey,
    SortKeys,
    Update,
    UpdateOperator,
    Updates,
)
from snack_query.config import Settings, configure_logging
from snack_query.records import Schedule, User

logger = logging.getLogger(__name__)


def user_filters(user_id: str) -> Filters:
    return Filters([
        Filter(key="user_id", value=user_id, type=DataType.STRING, operator=Operator.EQUAL),
    ])


def track_address(store: MongoDataStore, collection: str, user_id: str, address_id: str) -> User:
    """Register the user on first use, then append the address to their list."""
    filters = user_filters(user_id)
    
    try:
        store.get_one(collection, filters, document_class=User)
    except NotFoundError:
        store.insert(collection, User(user_id=user_id))
        logger.info(f"Registered user {user_id}")
    
    updates = Updates([
        Update(
            key="address_ids",
            value=[address_id],
            type=DataType.STRING_ARRAY,
            update_operator=UpdateOperator.PUSH,
        ),
    ])
    return store.find_one_and_update(collection, filters, updates, document_class=User)


def update_settings(store: MongoDataStore, collection: str, user_id: str, schedule, address_ids) -> User:
    """Overwrite the user's schedule and addresses in one atomic call."""
    updates = Updates([
        Update(
            key="schedule",
            value=[s.model_dump(by_alias=True) for s in schedule],
            update_operator=UpdateOperator.SET,
        ),
        Update(
            key="address_ids",
            value=address_ids,
            type=DataType.STRING_ARRAY,
            update_operator=UpdateOperator.SET,
        ),
    ])
    return store.find_one_and_update(collection, user_filters(user_id), updates, document_class=User)


def set_channel(store: MongoDataStore, collection: str, user_id: str, channel_id: str, team_domain: str) -> None:
    """Point a user's notifications at a channel, creating the user if needed."""
    updates = Updates([
        Update(key="channel_id", value=channel_id, type=DataType.STRING),
        Update(key="team_domain", value=team_domain, type=DataType.STRING),
    ])
    store.upsert(collection, user_filters(user_id), updates)


def users_for_address(store: MongoDataStore, collection: str, address_id: str):
    """Page through every user tracking an address, ordered by user id."""
    filters = Filters([
        Filter(key="address_ids", value=address_id, type=DataType.STRING_ARRAY, operator=Operator.IN_ARRAY),
    ])
    sort_keys = SortKeys([SortKey(key="user_id", order=Order.ASC)])
    
    offset = ""
    while True:
        page = store.get_sorted(collection, filters, sort_keys, offset=offset, limit=50, document_class=User)
        yield from page.documents
        if not page.has_next:
            break
        offset = page.next


def users_per_team(store: MongoDataStore, collection: str):
    group_keys = GroupKeys([GroupKey(key="team_domain", value="$team_domain")])
    aggregate_keys = AggregateKeys([AggregateKey(key="users", operator=AggregateOperator.SUM, value=1)])
    return list(store.get_aggregate(collection, Filters(), group_keys, aggregate_keys))


def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    
    store = MongoDataStore.from_settings(settings)
    collection = settings.users_collection
    
    print("\n" + "=" * 80)
    print("EXAMPLE: snack-track user flows")
    print("=" * 80)
    
    user = track_address(store, collection, "U042", "home")
    print(f"Tracking addresses: {user.address_ids}")
    
    set_channel(store, collection, "U042", "C777", "acme")
    
    user = update_settings(
        store,
        collection,
        "U042",
        schedule=[Schedule(from_="12:00", to="14:00"), Schedule(from_="19:00", to="21:00")],
        address_ids=["home", "office"],
    )
    print(f"Schedule: {[(s.from_, s.to) for s in user.schedule]}")
    
    print("\n--- Users tracking 'office' ---")
    for tracked in users_for_address(store, collection, "office"):
        print(f"  {tracked.user_id} -> #{tracked.channel_id}")
    
    print("\n--- Users per team ---")
    for group in users_per_team(store, collection):
        print(f"  {group['_id'].get('team_domain')}: {group['users']}")
    
    deleted = store.delete(collection, user_filters("U042"))
    print(f"\nCleaned up {deleted} user(s)")


if __name__ == "__main__":
    main()
