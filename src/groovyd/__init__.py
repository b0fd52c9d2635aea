"""groovyd - external Groovy compiler driver.

Compiles Groovy sources by launching a compiler in a separate JVM, passing it
a parameter file and parsing the records it prints back.
"""

__version__ = "0.1.0"
