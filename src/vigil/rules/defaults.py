"""Built-in rule set written when a project has no usable rules document.

Once written, the project's rules document is the only source of truth;
these definitions are never merged back in.
"""

from typing import Any

# Rules implemented by code instead of a regex carry this never-matching
# pattern so the stored document keeps every field non-empty.
STRUCTURAL_PLACEHOLDER = "(?!)"

DEFAULT_RULES: dict[str, dict[str, Any]] = {
  "no-main-thread-sync": {
    "message": "dispatch_sync onto the main queue deadlocks when called from the main thread",
    "severity": "error",
    "pattern": r"dispatch_sync\s*\([^)]*main",
    "languages": ["objc", "swift"],
    "dimension": "file",
  },
  "main-thread-sync-swift": {
    "message": "DispatchQueue.main.sync deadlocks when called from the main thread",
    "severity": "error",
    "pattern": r"DispatchQueue\.main\.sync",
    "languages": ["swift"],
    "dimension": "file",
  },
  "ui-off-main-objc": {
    "message": "UIKit calls must run on the main thread",
    "severity": "warning",
    "pattern": r"(UIView|UIApplication|UILabel|UIButton)\.(alloc|init|new)|\[UIApplication sharedApplication\]",
    "languages": ["objc"],
    "note": "Textual hint only; whether the call is on the main thread needs runtime or deeper analysis",
    "dimension": "file",
  },
  "ui-off-main-swift": {
    "message": "UIKit calls must run on the main thread",
    "severity": "warning",
    "pattern": r"UIView\.init|UIApplication\.shared|UILabel\(|UIButton\(",
    "languages": ["swift"],
    "note": "Textual hint only; DispatchQueue.main.async is the correct usage and is not matched",
    "dimension": "file",
  },
  "objc-dealloc-async": {
    "message": "dealloc must not schedule async work, post notifications or delayed selectors; the callback outlives the object",
    "severity": "error",
    "pattern": r"(dealloc.*(dispatch_async|dispatch_after|postNotification|performSelector.*afterDelay))|((dispatch_async|dispatch_after|postNotification|performSelector.*afterDelay).*dealloc)",
    "languages": ["objc"],
    "note": "Matches dealloc and the async call on the same line; whole method bodies need manual review",
    "dimension": "file",
  },
  "objc-nested-dispatch-sync": {
    "message": "Nested dispatch_sync on one line is prone to deadlock",
    "severity": "error",
    "pattern": r"dispatch_sync\s*\([^)]*\).*dispatch_sync",
    "languages": ["objc"],
    "dimension": "file",
  },
  "objc-synchronized-dispatch-sync": {
    "message": "dispatch_sync inside @synchronized is prone to deadlock",
    "severity": "warning",
    "pattern": r"@synchronized.*dispatch_sync|dispatch_sync.*@synchronized",
    "languages": ["objc"],
    "note": "Same-line matches only",
    "dimension": "file",
  },
  "objc-init-return-nil": {
    "message": "return nil in an initializer should follow [super init] or self = [super init]; verify manually",
    "severity": "warning",
    "pattern": STRUCTURAL_PLACEHOLDER,
    "languages": ["objc"],
    "note": "Structural check: scans the enclosing method for a super or sibling initializer call",
    "dimension": "file",
  },
  "objc-main-callback-dispatch-sync": {
    "message": "dispatch_sync from a main-queue or completion callback is prone to deadlock; make sure the target queue differs",
    "severity": "warning",
    "pattern": r"(completion|onMain|mainQueue).*dispatch_sync|dispatch_sync.*(completion|onMain|mainQueue)",
    "languages": ["objc"],
    "note": "Relies on naming conventions; same-line matches only",
    "dimension": "file",
  },
  "objc-synchronized-wait-sleep": {
    "message": "Blocking calls such as sleep or wait inside a lock risk deadlock and stalls",
    "severity": "warning",
    "pattern": r"@synchronized.*(sleep\s*\(|dispatch_wait|pthread_cond_wait)|(sleep\s*\(|dispatch_wait|pthread_cond_wait).*@synchronized",
    "languages": ["objc"],
    "note": "Same-line matches only",
    "dimension": "file",
  },
  "objc-mutable-container-multithread": {
    "message": "Mutable container used alongside GCD dispatch; it may need a lock or a thread-safe structure",
    "severity": "warning",
    "pattern": r"(NSMutableArray|NSMutableDictionary)[^;]*(dispatch_async|dispatch_sync)|(dispatch_async|dispatch_sync)[^;]*(NSMutableArray|NSMutableDictionary)",
    "languages": ["objc"],
    "note": "Same-line matches only; review separate lines manually",
    "dimension": "file",
  },
  "objc-possible-main-thread-blocking": {
    "message": "sleep/usleep may block the main thread; make sure this runs in the background or go async",
    "severity": "warning",
    "pattern": r"\b(sleep|usleep)\s*\(",
    "languages": ["objc"],
    "note": "Ignore when the call is known to run on a background thread",
    "dimension": "file",
  },
  "objc-block-retain-cycle": {
    "message": "Block captures self strongly and may create a retain cycle; use __weak typeof(self) weakSelf = self",
    "severity": "warning",
    "pattern": STRUCTURAL_PLACEHOLDER,
    "languages": ["objc"],
    "note": "Structural check: inspects ^{ ... } bodies for a weak alias",
    "dimension": "file",
  },
  "objc-timer-retain-cycle": {
    "message": "NSTimer retains its target; invalidate before dealloc or use the block-based API",
    "severity": "warning",
    "pattern": r"(scheduledTimerWithTimeInterval|timerWithTimeInterval)[^;]*target\s*:\s*self|target\s*:\s*self[^;]*(scheduledTimerWithTimeInterval|timerWithTimeInterval)",
    "languages": ["objc"],
    "note": "Same-line matches only",
    "dimension": "file",
  },
  "objc-assign-object": {
    "message": "assign on an object property leaves a dangling pointer; use weak (delegates) or strong",
    "severity": "warning",
    "pattern": r"@property\s*\([^)]*\bassign\b[^)]*\)[^;]*(\*|id\s*<|\bid\s+)",
    "languages": ["objc"],
    "note": "assign is fine for scalar types such as int or BOOL",
    "dimension": "file",
  },
  "objc-copy-id": {
    "message": "copy on an id property requires the runtime object to adopt NSCopying",
    "severity": "warning",
    "pattern": r"@property\s*\([^)]*\bcopy\b[^)]*\)[^;]*(id\s*<|\bid\s+)",
    "languages": ["objc"],
    "note": "Same-line matches only",
    "dimension": "file",
  },
  "swift-force-cast": {
    "message": "Forced cast as! crashes on failure; prefer as? or guard let",
    "severity": "warning",
    "pattern": r"as\s*!",
    "languages": ["swift"],
    "note": "Acceptable where the surrounding code guarantees the type",
    "dimension": "file",
  },
  "swift-force-try": {
    "message": "try! crashes when an error is thrown; prefer do-catch or try?",
    "severity": "warning",
    "pattern": r"try\s*!",
    "languages": ["swift"],
    "dimension": "file",
  },
  "objc-kvo-missing-remove": {
    "message": "addObserver without a matching removeObserver (KVO or NSNotificationCenter); remove the observer in dealloc or earlier",
    "severity": "warning",
    "pattern": STRUCTURAL_PLACEHOLDER,
    "languages": ["objc"],
    "note": "Structural check: file-level scan",
    "dimension": "file",
  },
  "objc-copy-custom-type": {
    "message": "copy on a custom class requires NSCopying (copyWithZone:) or the setter may crash; NS-prefixed system types are exempt",
    "severity": "warning",
    "pattern": STRUCTURAL_PLACEHOLDER,
    "languages": ["objc"],
    "note": "Structural check: flags non-system property types",
    "dimension": "file",
  },
  "objc-duplicate-category": {
    "message": "Category declared more than once for the same class",
    "severity": "warning",
    "pattern": STRUCTURAL_PLACEHOLDER,
    "languages": ["objc"],
    "note": "Structural audit: compares @interface Class (Category) declarations",
  },
  "js-no-eval": {
    "message": "eval() is a security and performance risk",
    "severity": "error",
    "pattern": r"\beval\s*\(",
    "languages": ["javascript", "typescript"],
    "dimension": "file",
  },
  "js-no-var": {
    "message": "Use let or const instead of var to avoid hoisting surprises",
    "severity": "warning",
    "pattern": r"\bvar\s+\w+",
    "languages": ["javascript", "typescript"],
    "dimension": "file",
  },
  "js-no-console-log": {
    "message": "Remove console.log from production code; use a logging library",
    "severity": "warning",
    "pattern": r"console\.log\s*\(",
    "languages": ["javascript", "typescript"],
    "dimension": "file",
  },
  "js-no-debugger": {
    "message": "debugger statements must not ship",
    "severity": "error",
    "pattern": r"\bdebugger\b",
    "languages": ["javascript", "typescript"],
    "dimension": "file",
  },
  "ts-no-any": {
    "message": "Avoid any; use unknown or a concrete type",
    "severity": "warning",
    "pattern": r":\s*any\b",
    "languages": ["typescript"],
    "dimension": "file",
  },
  "ts-no-non-null-assertion": {
    "message": "Non-null assertion ! can hide null/undefined errors",
    "severity": "warning",
    "pattern": r"\w+!\.",
    "languages": ["typescript"],
    "dimension": "file",
  },
  "py-no-bare-except": {
    "message": "Bare except: also catches SystemExit and KeyboardInterrupt; name the exception type",
    "severity": "warning",
    "pattern": r"except\s*:",
    "languages": ["python"],
    "dimension": "file",
  },
  "py-no-exec": {
    "message": "exec() is a security risk",
    "severity": "error",
    "pattern": r"\bexec\s*\(",
    "languages": ["python"],
    "dimension": "file",
  },
  "py-no-mutable-default": {
    "message": "Mutable default argument (list) is shared between calls; default to None",
    "severity": "warning",
    "pattern": r"def\s+\w+\s*\([^)]*=\s*\[\]",
    "languages": ["python"],
    "dimension": "file",
  },
  "java-no-system-exit": {
    "message": "System.exit() terminates the JVM; throw or return a status instead",
    "severity": "error",
    "pattern": r"System\.exit\s*\(",
    "languages": ["java", "kotlin"],
    "dimension": "file",
  },
  "java-no-raw-type": {
    "message": "Use a parameterized collection type (List<String>, not List)",
    "severity": "warning",
    "pattern": r"(List|Map|Set|Collection|Iterable)\s+\w+\s*[=;]",
    "languages": ["java"],
    "dimension": "file",
  },
  "go-no-panic": {
    "message": "panic is for unrecoverable errors; library code should return an error",
    "severity": "warning",
    "pattern": r"\bpanic\s*\(",
    "languages": ["go"],
    "dimension": "file",
  },
  "go-no-err-ignored": {
    "message": "Error values must not be discarded with _; handle them or say why",
    "severity": "warning",
    "pattern": r"\b_\s*,\s*err\s*:?=|_\s*=\s*\w+\(",
    "languages": ["go"],
    "dimension": "file",
  },
  "rust-no-unwrap": {
    "message": "unwrap() panics on None/Err; use ? or a match",
    "severity": "warning",
    "pattern": r"\.unwrap\s*\(",
    "languages": ["rust"],
    "dimension": "file",
  },
  "rust-no-unsafe": {
    "message": "unsafe blocks need review and a comment stating why they are sound",
    "severity": "warning",
    "pattern": r"\bunsafe\s*\{",
    "languages": ["rust"],
    "dimension": "file",
  },
}
