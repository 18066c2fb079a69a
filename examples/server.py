import enum
import itertools

import msgspec

from jsonresult import JSONResult, json_property, logs, smd_method, smd_param
from jsonresult.http import JSONHTTPServer

_counter = itertools.count(1)


class Status(enum.Enum):
    ACTIVE = 'active'
    LOCKED = 'locked'


class User(msgspec.Struct):
    name: str
    email: str
    status: Status = Status.ACTIVE
    password: str = ''


class UsersAction:
    """Example action: the state of a request handler."""

    def __init__(self, request):
        self.request_id = next(_counter)
        self.query = request.get_parameter('q')
        self.users = [
            User('alice', 'alice@example.com', password='x'),
            User('bob', 'bob@example.com', Status.LOCKED, password='y'),
        ]

    @property
    @json_property(name='count')
    def total(self):
        return len(self.users)

    @smd_method()
    def find(self, name):
        return [u for u in self.users if u.name == name]

    @smd_method(name='lock')
    @smd_param('name', name='userName')
    def lock_user(self, name):
        for user in self.users:
            if user.name == name:
                user.status = Status.LOCKED


def main():
    logs.init()

    s = JSONHTTPServer('http://localhost:8080')
    # try: curl 'http://localhost:8080/users?callback=cb'
    s.route(
        '/users',
        UsersAction,
        JSONResult.from_options(
            {'excludeWildcards': 'users[*].password', 'callbackParameter': 'callback'}
        ),
    )
    s.route('/users.smd', UsersAction, JSONResult.from_options({'enableSMD': True}))
    s.serve()


if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        pass
