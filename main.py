from time import sleep, perf_counter
from dataclasses import dataclass

from lazy import LazyCollection
from sortby import sort_by, sort_by_desc
from utils import CountingKey, process_sort_request


@dataclass
class Person:
    name: str
    age: int


def slow_age(person):
    # Pretend the key is expensive so staging is visible
    sleep(0.01)
    return person.age


people = [
    Person("Rich", 18),
    Person("Bob", 9),
    Person("Marc", 21),
    Person("Alice", 18),
]

print("\n--- Demo: laziness (no work until the first pull) ---")
age_key = CountingKey(slow_age)
adapter = sort_by(people, age_key).then_sort_by(lambda p: p.name)
print(f"Constructed adapter, key calls so far: {age_key.count}")
t0 = perf_counter()
first = next(adapter)
t1 = perf_counter()
print(f"First element: {first} (staging took {t1 - t0:.2f}s, {age_key.count} key calls)")
print(f"Remaining: {adapter.to_list()}\n")

print("--- Demo: descending primary key, ascending tie-break ---")
for person in sort_by_desc(people, lambda p: p.age).then_sort_by(lambda p: p.name):
    print(f"  {person.age:>3}  {person.name}")
print()

print("--- Demo: sorting a lazy pipeline ---")
pipeline = (
    LazyCollection(range(1, 30))
    .filter(lambda v: v % 3 == 0)
    .map(lambda v: (v % 4, v))
    .sort_by(lambda t: t[0])
    .then_sort_by_desc(lambda t: t[1])
)
print(f"Grouped by remainder, largest first: {pipeline.to_list()}\n")

print("--- Demo: declarative request ---")
result = process_sort_request({
    "items": [{"team": "B", "points": 7}, {"team": "A", "points": 7}, {"team": "C", "points": 9}],
    "keys": [{"field": "points", "direction": "desc"}, {"field": "team"}],
})
print(f"Result: {result.items}")
print(f"Time: {result.performance.execution_time_ms:.3f}ms, key calls: {result.performance.key_calls}")
