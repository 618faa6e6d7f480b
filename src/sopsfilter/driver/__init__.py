"""Git filter/diff driver registration."""

from sopsfilter.driver.installer import driver_name, install_driver, uninstall_driver

__all__ = ["driver_name", "install_driver", "uninstall_driver"]
