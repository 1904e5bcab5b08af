from django_typedkv.structures.hashes import HashStore
from django_typedkv.structures.lists import ListStore
from django_typedkv.structures.sets import SetStore
from django_typedkv.structures.sorted_sets import SortedSetStore
from django_typedkv.structures.values import ValueStore

__all__ = [
    "HashStore",
    "ListStore",
    "SetStore",
    "SortedSetStore",
    "ValueStore",
]
