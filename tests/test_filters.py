from jsonresult import PropertyFilter
from jsonresult.filters import ACCEPT_ALL
from jsonresult.patterns import WILDCARD, compile_all, process_include_patterns


def test_accept_all():
    assert not ACCEPT_ALL.active
    assert ACCEPT_ALL.accept('')
    assert ACCEPT_ALL.accept('anything.at[0].all')


def test_excludes():
    f = PropertyFilter(excludes=compile_all(['a\\.b', 'c']))

    assert f.active
    assert f.accept('a')
    assert not f.accept('a.b')
    assert f.accept('a.bc')
    assert not f.accept('c')


def test_includes():
    f = PropertyFilter(includes=process_include_patterns(['a.*'], WILDCARD))

    assert f.accept('a')
    assert f.accept('a.b')
    assert not f.accept('a.b.c')
    assert not f.accept('b')


def test_exclude_wins():
    f = PropertyFilter(
        includes=process_include_patterns(['a.**'], WILDCARD),
        excludes=compile_all(['a.secret'], WILDCARD),
    )

    assert f.accept('a.public')
    assert not f.accept('a.secret')


def test_from_options_combines_flavors():
    f = PropertyFilter.from_options(
        include_properties='a\\.b',
        include_wildcards='c.*',
        exclude_properties='a\\.b\\.x',
        exclude_wildcards='c.y, c.z',
    )

    assert [p.source for p in f.includes] == ['a', 'a\\.b', 'c', 'c.*']
    assert [p.source for p in f.excludes] == ['a\\.b\\.x', 'c.y', 'c.z']

    assert f.accept('a.b')
    assert f.accept('c.w')
    assert not f.accept('c.y')
    assert not f.accept('d')


def test_from_options_empty():
    f = PropertyFilter.from_options()

    assert not f.active
    assert f == ACCEPT_ALL
