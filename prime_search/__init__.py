# prime_search/ : escalating-digit probable prime search (1 producer / N workers)
from .primality import is_prime, build_small_primes, SMALL_PRIMES
from .contracts import Task, ResultRecord, CounterSnapshot
from .config import SearchConfig
from .search import PrimeSearch, SearchLockedError
