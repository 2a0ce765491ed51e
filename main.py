from rich.pretty import pprint

from decorum import *


@decorator
def counted(invoke, params):
    calls = 0

    def replacement(*args, **kwargs):
        nonlocal calls
        calls += 1
        return calls, invoke(*args, **kwargs)

    return replacement


class Greeter:
    def __init__(self, name):
        self.name = name

    @counted
    def greet(self, greeting="hello"):
        return f"{greeting}, {self.name}"


if __name__ == '__main__':
    alice, bob = Greeter("alice"), Greeter("bob")
    pprint([alice.greet(), alice.greet("hi"), bob.greet()])
    pprint(Greeter.greet)
