from setuptools import find_packages, setup

setup(
    name='kawaiilogger-menubridge',
    version='1.0.0',
    description='Unix-socket receiver that shows KawaiiLogger metrics in the system tray',
    author='isantolin',
    author_email='',
    packages=find_packages(include=['menubridge', 'menubridge.*']),
    python_requires='>=3.12',
    install_requires=[
        'msgspec',
        'tenacity',
        'transitions',
        'uvloop',
        'marshmallow',
    ],
    extras_require={
        'tray': [
            'pystray',
            'Pillow',
        ],
        'test': [
            'pytest',
            'pytest-asyncio',
            'pystray',
            'Pillow',
        ],
    },
    entry_points={
        'console_scripts': [
            'menubridge=menubridge.daemon:main',
        ],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: POSIX',
    ],
)
