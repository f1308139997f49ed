from setuptools import setup, find_packages


with open("README.md", "r") as fh:
    long_description = fh.read()


setup(
    name='PyVO2',
    version='0.0.1',
    license='Apache License 2.0',
    description='PyVO2 charts the daily VO2max, heart rate, cadence and weight of running activities stored in .FIT files',
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=['test']),
    py_modules=['scr_vo2max_report'],
    install_requires=['numpy', 'pandas'],
    extras_require={'test': ['pytest']},
)
