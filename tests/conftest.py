"""
Pytest configuration for multi-store testing.

This file sets up automatic parametrization for test classes that inherit from
MultiStoreTestBase.
"""

from docmachine.testing import MultiStoreTestBase


def pytest_generate_tests(metafunc):
    """
    Pytest hook to automatically parametrize the 'store' fixture for MultiStoreTestBase subclasses.

    This ensures every test method in classes that inherit from MultiStoreTestBase
    gets run against all enabled stores.
    """
    if (metafunc.cls is not None and
        issubclass(metafunc.cls, MultiStoreTestBase) and
        'store' in metafunc.fixturenames):

        stores = metafunc.cls.get_available_stores()

        metafunc.parametrize(
            'store',
            stores,
            indirect=True,
            ids=[f"store-{s}" for s in stores]
        )
